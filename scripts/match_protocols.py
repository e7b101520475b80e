"""
Match a patient against treatment protocols from the command line.

Reads a patient profile JSON file and either a protocols JSON file or the
configured protocol store, then prints ranked matches.

Usage:
    python scripts/match_protocols.py patient.json --protocols protocols.json
    python scripts/match_protocols.py patient.json --line first --max-results 5 --json
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from src.protocol_matching.errors import ProtocolMatchingError
from src.protocol_matching.factory import create_matching_engine
from src.protocol_matching.models.enums import EvidenceLevel, TreatmentLine
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.request import MatchingRequest
from src.protocol_matching.repositories.in_memory import InMemoryProtocolRepository
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def print_results(results):
    if not results:
        print("No matching protocols.")
        return

    for rank, result in enumerate(results, 1):
        protocol = result.protocol
        print(f"{rank:>2}. {protocol.name} [{protocol.id}]")
        print(f"    score {result.match_score:.2f} | {result.eligibility_status.value} | "
              f"confidence {result.confidence.value} | evidence {protocol.evidence_level.value} | "
              f"risk {result.safety.risk_level.value}")
        for violation in result.eligibility.violations:
            print(f"    - [{violation.severity.value}] {violation.description}")
        for contraindication in result.contraindications:
            print(f"    ! {contraindication.type.value}: {contraindication.description}")
        for recommendation in result.recommendations:
            print(f"    > {recommendation}")


async def run(args) -> int:
    with open(args.patient, "r", encoding="utf-8") as f:
        patient = PatientProfile.model_validate(json.load(f))

    repository = InMemoryProtocolRepository.from_json_file(args.protocols) if args.protocols else None
    engine = create_matching_engine(repository=repository)

    request = MatchingRequest(
        patient=patient,
        treatment_line=TreatmentLine(args.line) if args.line else None,
        max_results=args.max_results,
        include_experimental=args.include_experimental,
        minimum_evidence_level=EvidenceLevel(args.min_evidence) if args.min_evidence else None,
        exclude_contraindicated=args.exclude_contraindicated,
    )

    try:
        results = await engine.find_matching_protocols(request)
    except ProtocolMatchingError as e:
        logger.error(f"Matching failed: {e}")
        return 1

    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
    else:
        print_results(results)
    return 0


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description='Match a patient to treatment protocols')
    parser.add_argument('patient', help='Path to patient profile JSON')
    parser.add_argument('--protocols', help='Path to protocols JSON (defaults to the configured store)')
    parser.add_argument('--line', choices=[line.value for line in TreatmentLine], help='Line of therapy')
    parser.add_argument('--max-results', type=int, default=10, help='Maximum results to show')
    parser.add_argument('--min-evidence', choices=[level.value for level in EvidenceLevel],
                        help='Filter by minimum evidence level instead of score')
    parser.add_argument('--include-experimental', action='store_true', help='Include investigational protocols')
    parser.add_argument('--exclude-contraindicated', action='store_true', help='Hide contraindicated protocols')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')
    parser.add_argument('--log-level', default='WARNING', help='Logging level')
    args = parser.parse_args()

    setup_logging(level=args.log_level, log_file="")
    sys.exit(asyncio.run(run(args)))
