from atcrisk.sim.encounter_generators import make_head_on
from atcrisk.sim.simulate import pair_to_frame, simulate_pair


def main():
    a, b = make_head_on(separation_nm=20.0, speed_kts=360.0, alt_ft=30000.0)
    pair = simulate_pair(a, b, dt_s=10.0, horizon_s=50.0)
    df = pair_to_frame(pair)

    print("Number of rows:", len(df))
    print("First row:", df.iloc[0].to_dict())
    print("Last row:", df.iloc[-1].to_dict())

    print("\nExpected:")
    print("- dt=10, horizon=50 => times 0,10,20,30,40,50 => 6 rows")
    print("- a_lon should increase each step")
    print("- b_lon should decrease each step")


if __name__ == "__main__":
    main()
