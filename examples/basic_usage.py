#!/usr/bin/env python3
"""
Basic usage example
"""
import sys
from pathlib import Path

# add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from meltkit import MeltingEngine, MeltingError, BatchProcessor, compute_tm
from meltkit.workflow import format_result, generate_reports


def main():
    """Basic usage example"""

    # One duplex with the defaults (Na+ 50 mM, 50 nM strands)
    print("🚀 Single duplex")
    result = compute_tm("GTCGTATCCAGTGCAGGGTCCGAGGTATTCGCACTGGATACGACTTCCAC")
    print(f"{result.method}: Tm = {result.tm:.2f} °C")

    # Full control through an engine
    engine = MeltingEngine()
    environment = engine.environment(
        sequence="AGCTAGCATCGA",
        complement="TCGATCGTAGCC",
        ions="Na=0.05,Mg=0.002",
        strand_concentration=2e-7,
    )
    print(format_result(engine.compute(environment), environment))

    # A hairpin does not depend on strand concentration
    hairpin = compute_tm("GCGCTTTTGCGC", hybridization="hairpin")
    print(f"Hairpin: Tm = {hairpin.tm:.2f} °C")

    # Errors are typed
    try:
        compute_tm("ACGTACGT", model="xia98")
    except MeltingError as e:
        print(f"❌ {type(e).__name__}: {e}")

    # A small batch with reports
    print("🚀 Batch")
    df = pd.DataFrame({
        'name': ['p1', 'p2', 'p3'],
        'sequence': ['ACGTTGCAAGGCTTAACGTA', 'GGCCAATTGGCCAATT', 'ACGUUGCAAGGCUUAACGUA'],
        'hybridization': ['dnadna', 'dnadna', 'rnarna'],
    })
    batch = BatchProcessor(engine=engine).process(df)
    reports = generate_reports(batch.results, "./example_results", ['csv', 'html'])

    print(f"✅ {batch.succeeded}/{batch.total} computed")
    for fmt, path in reports.items():
        print(f"  {fmt}: {path}")


if __name__ == "__main__":
    main()
