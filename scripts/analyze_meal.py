#!/usr/bin/env python3
"""
Analyze a meal photo from the command line and print the nutrition record.

Uses OPENAI_API_KEY from the environment. Without it the fallback analysis is
printed, which is handy for checking the output shape.

Usage:
    python analyze_meal.py lunch.jpg
    python analyze_meal.py lunch.jpg --locale hebrew
    python analyze_meal.py lunch.jpg --update "add more rice"
"""

import argparse
import base64
import json
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app import config
from app.logging_config import configure_logging
from app.meal_analyzer import ImageValidationError, MealAnalyzer


def main():
    """Analyze one image and print the result as JSON."""
    parser = argparse.ArgumentParser(
        description="Analyze a meal photo and print its nutrition as JSON"
    )
    parser.add_argument('image', type=Path, help='Path to a JPEG image')
    parser.add_argument(
        '--locale',
        choices=config.SUPPORTED_LOCALES,
        default=config.DEFAULT_LOCALE,
        help='Language for the prompt and fallback text'
    )
    parser.add_argument(
        '--update',
        default=None,
        help='Extra information about the meal, e.g. "no sauce"'
    )
    args = parser.parse_args()

    configure_logging(config.LOG_LEVEL)

    if not args.image.exists():
        print(f"Error: File not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    image_base64 = base64.b64encode(args.image.read_bytes()).decode('utf-8')
    analyzer = MealAnalyzer.from_config()

    try:
        result = analyzer.analyze_meal_image(image_base64, args.locale, args.update)
    except ImageValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result.used_fallback:
        print(f"⚠️  Fallback analysis used ({result.reason})", file=sys.stderr)

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
