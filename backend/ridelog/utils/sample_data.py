"""
Sample data generator for testing.

Generates realistic-looking electric skateboard telemetry in the recorder
CSV format (epoch-second timestamps, cumulative energy and distance).
"""

from pathlib import Path
from typing import Optional

import numpy as np


CSV_HEADER = "latitude,longitude,timestamp,altitude,speed,voltage,current,used_energy,trip_distance"


def generate_loop_ride(
    duration_s: float = 600.0,
    sample_rate_hz: float = 1.0,
    start_timestamp: int = 1_700_000_000,
    center_lat: float = 52.5200,
    center_lon: float = 13.4050,
    loop_radius_m: float = 250.0,
    cruise_speed_kmh: float = 25.0,
    pack_voltage: float = 42.0,
    seed: Optional[int] = None,
) -> str:
    """
    Generate a loop ride around a park.

    The board starts and ends at rest; speed ramps up to cruise with some
    noise, current follows acceleration, and energy/distance accumulate.
    """
    rng = np.random.default_rng(seed)

    n_samples = int(duration_s * sample_rate_hz)
    dt = 1.0 / sample_rate_hz
    t = np.arange(n_samples) * dt

    # Speed profile: ramp up, cruise, ramp down (km/h)
    ramp = max(n_samples // 10, 1)
    envelope = np.ones(n_samples)
    envelope[:ramp] = np.linspace(0.0, 1.0, ramp)
    envelope[-ramp:] = np.linspace(1.0, 0.0, ramp)
    speed_kmh = cruise_speed_kmh * envelope + rng.normal(0, 0.8, n_samples) * envelope
    speed_kmh = np.clip(speed_kmh, 0.0, None)

    # Distance along the loop
    step_m = speed_kmh / 3.6 * dt
    trip_distance = np.cumsum(step_m) - step_m[0]

    angle = trip_distance / loop_radius_m
    meters_per_deg_lat = 111000
    meters_per_deg_lon = 111000 * np.cos(np.radians(center_lat))
    lat = center_lat + loop_radius_m * np.sin(angle) / meters_per_deg_lat
    lon = center_lon + loop_radius_m * (1 - np.cos(angle)) / meters_per_deg_lon
    altitude = 34.0 + 2.0 * np.sin(angle)

    # Motor current from drag plus acceleration (A), regen when braking
    accel = np.diff(speed_kmh / 3.6, prepend=0.0) / dt
    current = 0.25 * speed_kmh + 8.0 * accel + rng.normal(0, 0.3, n_samples)

    voltage = pack_voltage - 0.02 * current - np.linspace(0.0, 2.5, n_samples)
    power_w = voltage * current
    used_energy = np.cumsum(np.clip(power_w, 0.0, None) * dt / 3600.0)  # Wh

    lines = [CSV_HEADER]
    for i in range(n_samples):
        lines.append(
            f"{lat[i]:.7f},"
            f"{lon[i]:.7f},"
            f"{start_timestamp + int(t[i])},"
            f"{altitude[i]:.1f},"
            f"{speed_kmh[i]:.2f},"
            f"{voltage[i]:.2f},"
            f"{current[i]:.2f},"
            f"{used_energy[i]:.3f},"
            f"{trip_distance[i]:.1f}"
        )
    return "\n".join(lines) + "\n"


def write_loop_ride(output_path: Path, **kwargs) -> Path:
    """Write a generated loop ride to a CSV file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(generate_loop_ride(**kwargs))
    return output_path


def generate_test_data_set(output_folder: Path) -> list[Path]:
    """Generate a set of test data files."""
    output_folder.mkdir(parents=True, exist_ok=True)

    return [
        write_loop_ride(
            output_folder / "ride_001_commute.csv",
            duration_s=900.0,
            cruise_speed_kmh=24.0,
            seed=1,
        ),
        write_loop_ride(
            output_folder / "ride_002_park_fast.csv",
            duration_s=420.0,
            cruise_speed_kmh=32.0,
            loop_radius_m=180.0,
            seed=2,
        ),
        write_loop_ride(
            output_folder / "ride_003_short_hop.csv",
            duration_s=120.0,
            cruise_speed_kmh=15.0,
            seed=3,
        ),
    ]


if __name__ == "__main__":
    # Generate test data when run directly
    output = Path("./data/samples")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} sample rides in {output}")
    for f in files:
        print(f"  - {f.name}")
