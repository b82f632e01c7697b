from atcrisk.core.geometry import PointPair
from atcrisk.sim.encounter_generators import make_head_on


def main():
    a, b = make_head_on(separation_nm=20.0, speed_kts=360.0, alt_ft=30000.0)
    points = PointPair(a, b)
    cpa = points.closest_point_of_approach()

    print("Closure rate:", points.horizontal_closure())
    print("Time until CPA (s):", cpa.time_until_cpa.total_seconds())
    print("Distance at CPA:", cpa.distance_at_cpa)
    print("Expected: 720kn, ~100.0, ~0NM")


if __name__ == "__main__":
    main()
