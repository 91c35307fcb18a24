"""
Run one consultation from the command line.
Usage: python scripts/consult.py "<question>" [--advisors=data/sample_advisors.json] [--domain=cliniboard]
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Add backend directory to path to import advisorboard modules
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from advisorboard.core.logging import configure_logging  # noqa: E402
from advisorboard.models.advisor import Advisor  # noqa: E402
from advisorboard.models.llm import LLMOverrides  # noqa: E402
from advisorboard.services.orchestration.orchestrator import get_response_orchestrator  # noqa: E402

DEFAULT_ADVISORS = backend_path.parent / "data" / "sample_advisors.json"


def load_advisors(path: Path, domain: Optional[str] = None) -> List[Advisor]:
    """Read advisors from a JSON list, optionally keeping one domain."""
    with open(path, encoding="utf-8") as f:
        advisors = [Advisor(**item) for item in json.load(f)]
    if domain:
        advisors = [advisor for advisor in advisors if advisor.domain == domain]
    return advisors


async def run_consultation(question: str, advisors: List[Advisor], domain: str, provider: Optional[str]):
    overrides = LLMOverrides(provider=provider) if provider else None
    result = await get_response_orchestrator().generate_advisor_responses(
        question, advisors, domain, overrides=overrides
    )
    print(result.model_dump_json(indent=2))


def main():
    parser = argparse.ArgumentParser(description="Ask a board of advisors a question")
    parser.add_argument("question", help="Question to ask")
    parser.add_argument("--advisors", type=Path, default=DEFAULT_ADVISORS, help="Advisor roster JSON file")
    parser.add_argument("--domain", default=None, help="Only consult advisors of this domain")
    parser.add_argument("--provider", default=None, help="Provider to try first (default: configured provider)")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args()

    load_dotenv()
    configure_logging(log_level=args.log_level, json_output=False)

    advisors = load_advisors(args.advisors, args.domain)
    if not advisors:
        print(f"No advisors found in {args.advisors}", file=sys.stderr)
        sys.exit(1)

    domain = args.domain or advisors[0].domain
    asyncio.run(run_consultation(args.question, advisors, domain, args.provider))


if __name__ == "__main__":
    main()
