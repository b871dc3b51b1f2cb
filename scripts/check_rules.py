#!/usr/bin/env python3
"""
Rules maintenance script for the Campaign Taxonomy Validator.

Usage:
    python scripts/check_rules.py                          # Load and check the platform rules file
    python scripts/check_rules.py --rules other_rules.yml  # Check another rules file
    python scripts/check_rules.py --file names.csv         # Validate an upload file against the rules
"""

import sys
from pathlib import Path

# Make the project importable when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

from campaign_taxonomy.core.config import settings
from campaign_taxonomy.models.entities import MalformedSchemaError
from campaign_taxonomy.models.repositories import SchemaRegistry
from campaign_taxonomy.services.bulk import BulkValidator, parse_campaign_file
from campaign_taxonomy.services.validator import CampaignValidator

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    """Main rules script."""
    import argparse

    parser = argparse.ArgumentParser(description="Platform rules utility for the Campaign Taxonomy Validator")
    parser.add_argument("--rules", default=str(settings.get_rules_file()), help="Platform rules YAML file")
    parser.add_argument("--file", help="CSV (name,platform) or text file of campaign names to validate")
    parser.add_argument("--platform", help="Platform for every name in --file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        registry = SchemaRegistry()
        loaded = registry.load_from_yaml(args.rules)
        if not loaded:
            logger.error(f"❌ No platform schemas loaded from {args.rules}")
            return 1

        for entry in registry.latest():
            logger.info(f"{entry.platform}: {len(entry.schema)} positions, max score {entry.schema.max_score}")
        logger.info(f"✅ {loaded} platform schemas are valid")

        if not args.file:
            return 0

        content = Path(args.file).read_text(encoding="utf-8")
        bulk = BulkValidator(CampaignValidator(registry))
        batch = bulk.validate_batch(parse_campaign_file(content), platform=args.platform)

        for item in batch.items:
            marker = "✅" if item.result.is_valid else "❌"
            logger.info(f"{marker} {item.original_name} ({item.result.score}/{item.result.max_score})")
            for violation in item.result.violations:
                logger.info(f"    {violation.rule_id}: {violation.description}")

        summary = batch.summary
        logger.info(
            f"Validated {summary.total} names: {summary.valid} valid, {summary.invalid} invalid, "
            f"average score {summary.avg_score}, {summary.fallbacks} fallbacks"
        )
        return 0 if summary.invalid == 0 else 1

    except MalformedSchemaError as e:
        logger.error(f"❌ Malformed rules file: {e}")
        return 1

    except Exception as e:
        logger.error(f"❌ Unexpected error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
