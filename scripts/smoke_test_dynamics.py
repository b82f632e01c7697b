from atcrisk.sim.dynamics import step_state
from atcrisk.sim.encounter_generators import make_head_on


def main():
    # aircraft A of a head-on pair starts at the origin, altitude of 30,000 ft
    # speed will be 360 knots
    # course will be 90 degrees (east)
    s, _ = make_head_on(speed_kts=360.0, alt_ft=30000.0)

    # move the object forward by 10 seconds
    s2 = step_state(s, dt_s=10.0)

    print("start state: ", s)
    print("after 10s: ", s2)
    print("moved (east_nm, north_nm):", s.position.vector_to_nm(s2.position))

    print("\nexpected: east ~1.0, north ~0.0, altitude unchanged")


if __name__ == "__main__":
    main()
