"""Arabic Screenplay Classifier - command line entry point.

This application reads raw Arabic screenplay text (a plain text file or
stdin) and emits a JSON array of typed lines: scene headers, action,
character cues, dialogue, parentheticals, transitions, basmala and blank
separators, reassembled with the spacing a formatted script expects.

The classifier offers two decoding modes:
    - Greedy: each line takes its best-scoring type given the lines already
      decided before it
    - Sequence (Viterbi): the whole document is decoded at once, balancing
      per-line scores against type-to-type transition affinities

Key Features:
    - Deterministic, rule-based classification with per-line doubt scores
    - Document memory of character names and places learned while reading
    - Optional LLM review of doubtful lines (local Ollama or Google Gemini)
    - Doubt statistics and greedy/sequence decoder comparison reports

Architecture:
    Pre-pass -> Document walk -> Greedy or Viterbi decoding -> LLM review
    (optional) -> Spacing rules -> JSON output

Examples:
    Basic greedy classification:
    $ python app.py input/episode1.txt

    Sequence decoding with doubt scores in the output:
    $ python app.py input/episode1.txt --viterbi --with-doubt

    Review doubtful lines with a local model:
    $ python app.py input/episode1.txt --review --engine local --model qwen2.5:7b

    Read from stdin and write the result to the output directory:
    $ cat episode1.txt | python app.py --output episode1.json

Note:
    Review is strictly additive: if the LLM is unreachable the rule-based
    classification is returned unchanged.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from config import settings
from screenplay_classifier import (
    ScreenplayClassifier,
    ClassifyOptions,
    get_doubt_statistics,
    compare_greedy_vs_viterbi,
)


def setup_logging(log_level: Optional[str] = None) -> None:
    """Console handler on stderr plus a detailed file handler under LOG_DIR."""
    log_dir = os.path.join(os.getcwd(), settings.LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)

    logging.getLogger().handlers.clear()

    file_log_level = getattr(logging, settings.FILE_LOG_LEVEL.upper(), logging.DEBUG)
    console_log_level = getattr(logging, (log_level or settings.CONSOLE_LOG_LEVEL).upper(), logging.INFO)

    detailed_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    simple_formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')

    file_handler = logging.FileHandler(os.path.join(log_dir, 'screenplay_classifier.log'), encoding='utf-8')
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(detailed_formatter)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_log_level)
    console_handler.setFormatter(simple_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify the lines of an Arabic screenplay.")

    parser.add_argument("input_file", nargs='?', help="Path to a UTF-8 text file. Reads stdin when omitted.")
    parser.add_argument("--output", help="Write the JSON result to this file name inside the output directory.")

    # Decoding
    parser.add_argument("--viterbi", action="store_true", help="Use the sequence (Viterbi) decoder instead of greedy decoding.")
    parser.add_argument("--with-doubt", action="store_true", help="Include the doubt score of each line in the output.")

    # Review
    parser.add_argument("--review", action="store_true", default=settings.REVIEW_ENABLED, help="Send doubtful lines to an LLM for review.")
    parser.add_argument("--engine", default=settings.DEFAULT_LLM_ENGINE, choices=["local", "gcp"], help="LLM engine used for review. Default comes from LLM_ENGINE.")
    parser.add_argument("--model", help="Model name for the review engine.")
    parser.add_argument("--review-threshold", type=float, default=settings.REVIEW_DOUBT_THRESHOLD, help="Doubt score at which a line is sent for review.")

    # Reports
    parser.add_argument("--stats", action="store_true", help="Print doubt statistics instead of the classified lines.")
    parser.add_argument("--compare", action="store_true", help="Print a line-by-line greedy versus sequence decoder comparison.")

    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Console log level.")
    parser.add_argument("--debug-llm", action="store_true", help="Log every review prompt and response to logs/llm_debug.log.")
    return parser


def read_input(input_file: Optional[str]) -> str:
    if not input_file:
        return sys.stdin.read()
    input_path = os.path.abspath(input_file)
    if not os.path.exists(input_path):
        raise FileNotFoundError(f"Input file not found at {input_path}")
    with open(input_path, 'r', encoding='utf-8') as f:
        return f.read()


def write_json(payload: Any, output_name: Optional[str]) -> None:
    rendered = json.dumps(payload, ensure_ascii=False, indent=2)
    if not output_name:
        print(rendered)
        return
    os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
    output_path = os.path.join(settings.OUTPUT_DIR, os.path.basename(output_name))
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(rendered)
    logging.getLogger(__name__).info(f"Result saved to {output_path}")


def comparison_report(text: str) -> Dict[str, Any]:
    rows = compare_greedy_vs_viterbi(text)
    disagreements: List[Dict[str, Any]] = [
        {
            "index": row.index,
            "text": row.text,
            "greedy": row.greedy_type.value,
            "viterbi": row.viterbi_type.value,
            "reason": row.viterbi_reason,
        }
        for row in rows
        if not row.agreement
    ]
    return {
        "total_lines": len(rows),
        "agreements": len(rows) - len(disagreements),
        "disagreements": disagreements,
    }


def main() -> None:
    """Command line entry point for the screenplay classifier.

    Reads the screenplay, runs the requested decoder, optionally reviews
    doubtful lines with an LLM, and prints (or saves) the JSON result.

    Exit codes:
        0 on success, 1 when the input cannot be read or the review engine is
        misconfigured, 2 on argument errors (raised by argparse).
    """
    parser = build_parser()
    args = parser.parse_args()

    if args.debug_llm:
        settings.LLM_DEBUG_LOGGING = True
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        text = read_input(args.input_file)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        sys.exit(1)

    try:
        if args.compare:
            write_json(comparison_report(text), args.output)
            return

        classifier = ScreenplayClassifier()
        if args.stats:
            results = classifier.classify_document(text, use_sequence_decoder=args.viterbi)
            stats = get_doubt_statistics(results)
            write_json({
                "total_lines": stats.total_lines,
                "needs_review_count": stats.needs_review_count,
                "needs_review_percentage": stats.needs_review_percentage,
                "top_ambiguities": stats.top_ambiguities,
            }, args.output)
            return

        options = ClassifyOptions(
            use_sequence_decoder=args.viterbi,
            include_doubt_score=args.with_doubt,
            enable_review=args.review,
            review_doubt_threshold=args.review_threshold,
            engine=args.engine,
            model=args.model,
        )
        lines = classifier.classify(text, options)
        write_json([line.to_dict() for line in lines], args.output)
    except ValueError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
