#!/usr/bin/env python3
"""Script to generate a small synthetic district dataset for quick testing"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from district_enclaves.data import GeographicDataGenerator, combine_frames, save_results
from district_enclaves.models.validators import GeometryValidator
from district_enclaves.algorithms import MetricsEngine


def main():
    """Generate sample districts"""
    print("District Enclaves Sample Data Generator")
    print("=" * 50)

    output_dir = Path(__file__).parent.parent / 'data' / 'sample'
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\nGenerating districts...")
    generator = GeographicDataGenerator(seed=42)
    frames = generator.generate_complete_geographic_data(
        ['VT', 'NH', 'ME'],
        elementary_codes=['VT'],
        n_cols=5,
        n_rows=5,
        enclave_rate=0.3
    )
    districts = combine_frames(frames)

    print("\nValidating districts...")
    is_valid, errors = GeometryValidator.validate_district_frame(districts)
    print(f"  Valid: {is_valid}")
    for error in errors:
        print(f"  - {error}")

    print("\nComputing metrics...")
    metrics = MetricsEngine().compute(districts)

    print("\nSaving data files...")
    save_results({
        'districts': districts,
        'enclaves': metrics.enclaves,
        'areas': metrics.areas,
        'compactness': metrics.compactness
    }, output_dir)

    print(f"\nData saved to: {output_dir}")

    print("\nDataset Summary:")
    print(f"  Districts: {len(districts)}")
    print(f"  Polygon parts: {len(metrics.parts)}")
    print(f"  Enclave relations: {len(metrics.enclaves)}")
    print(f"  Districts hosting enclaves: {(metrics.areas['enclave_count'] > 0).sum()}")


if __name__ == '__main__':
    main()
