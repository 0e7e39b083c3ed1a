"""CLI entrypoint for the originality analysis pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.text import Text

from .config import Settings, load_settings
from .highlighting import build_highlighted_segments
from .io_utils import discover_text_paths
from .literature import ArxivIndex, LiteratureRetriever, SemanticScholarIndex
from .llm_client import OpenAITextUnderstanding
from .models import AnalysisRecord, PDF_EXTRACTION_STATUSES
from .pipeline import OriginalityAnalysisPipeline
from .progress import RichProgressTracker
from .store import JsonAnalysisStore

SEGMENT_STYLES = {
    "unique": "",
    "referenced": "black on green",
    "unreferenced": "black on red",
}
SUGGESTION_ICONS = {"positive": "✓", "citation": "!", "rewrite": "→"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check research text for unreferenced similarity to indexed literature"
    )
    parser.add_argument("--dotenv", type=Path, default=None, help="Path to .env file")
    parser.add_argument(
        "--output-dir", type=Path, default=None, help="Override OUTPUT_DIR"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze text files")
    analyze.add_argument(
        "input", type=Path, help="Text/markdown file or directory containing them"
    )
    analyze.add_argument("--title", type=str, default=None, help="Analysis title")
    analyze.add_argument(
        "--input-type", choices=("text", "pdf"), default="text", help="Origin of the text"
    )
    analyze.add_argument(
        "--pdf-extraction-status",
        choices=sorted(PDF_EXTRACTION_STATUSES),
        default="not_applicable",
        help="Extraction status reported by the PDF text extractor",
    )
    analyze.add_argument("--model", type=str, default=None, help="Override OPENAI_MODEL")
    analyze.add_argument(
        "--max-files", type=int, default=None, help="Process only the first N files"
    )
    analyze.add_argument(
        "--no-rich",
        action="store_true",
        default=False,
        help="Disable Rich progress display, use simple tqdm instead",
    )

    show = subparsers.add_parser("show", help="Render a stored analysis")
    show.add_argument("analysis_id", type=str)

    wait = subparsers.add_parser("wait", help="Poll until an analysis finishes")
    wait.add_argument("analysis_id", type=str)
    wait.add_argument(
        "--timeout-sec", type=int, default=None, help="Override POLL_TIMEOUT_SEC"
    )
    return parser.parse_args(argv)


def build_pipeline(
    settings: Settings,
    store: JsonAnalysisStore,
    model: str | None = None,
    progress_tracker: RichProgressTracker | None = None,
) -> OriginalityAnalysisPipeline:
    retriever = LiteratureRetriever(
        indices=[
            SemanticScholarIndex(
                base_url=settings.semantic_scholar_base_url,
                api_key=settings.semantic_scholar_api_key,
                timeout_sec=settings.literature_timeout_sec,
                trust_env=settings.network_trust_env,
            ),
            ArxivIndex(
                base_url=settings.arxiv_base_url,
                timeout_sec=settings.literature_timeout_sec,
                trust_env=settings.network_trust_env,
            ),
        ]
    )
    text_understanding = OpenAITextUnderstanding(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=model or settings.openai_model,
        timeout_sec=settings.openai_timeout_sec,
        trust_env=settings.network_trust_env,
    )
    return OriginalityAnalysisPipeline(
        retriever=retriever,
        text_understanding=text_understanding,
        store=store,
        progress_tracker=progress_tracker,
    )


def render_analysis(
    console: Console, record: AnalysisRecord, store: JsonAnalysisStore
) -> None:
    console.print(Text(record.title, style="bold"))
    console.print(f"Status: {record.status}")
    if record.status == "failed":
        console.print("[red]Analysis failed. Re-run it to try again.[/red]")
        return
    if record.status != "completed":
        return

    score = record.overall_similarity_score or 0.0
    console.print(
        f"Similarity score: {score:.1f}%  Uniqueness: {record.uniqueness_level}"
        f"  References: {record.reference_detection_status}"
    )
    for suggestion in record.guidance_suggestions or []:
        icon = SUGGESTION_ICONS.get(suggestion.get("type", ""), "-")
        console.print(f"{icon} {suggestion.get('message', '')}")

    console.print()
    body = Text()
    for segment in build_highlighted_segments(
        record.display_text, store.load_matches(record.analysis_id)
    ):
        body.append(segment.text, style=SEGMENT_STYLES[segment.type])
    console.print(body)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    settings = load_settings(dotenv_path=args.dotenv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = JsonAnalysisStore(args.output_dir or settings.output_dir)
    console = Console()

    if args.command == "show":
        render_analysis(console, store.load(args.analysis_id), store)
        return

    if args.command == "wait":
        record = store.wait_for_completion(
            args.analysis_id,
            poll_interval_sec=settings.poll_interval_sec,
            timeout_sec=args.timeout_sec or settings.poll_timeout_sec,
        )
        console.print(f"{record.analysis_id}: {record.status}")
        return

    if not args.input.exists():
        raise FileNotFoundError(f"Input path does not exist: {args.input}")
    input_paths = discover_text_paths(args.input, max_files=args.max_files)

    progress_tracker = None
    if not args.no_rich:
        try:
            progress_tracker = RichProgressTracker(console=console)
            progress_tracker.start()
        except Exception:
            progress_tracker = None

    try:
        pipeline = build_pipeline(
            settings, store, model=args.model, progress_tracker=progress_tracker
        )
        results = pipeline.run_documents(
            input_paths,
            input_type=args.input_type,
            pdf_extraction_status=args.pdf_extraction_status,
            title=args.title,
        )
    finally:
        if progress_tracker:
            progress_tracker.stop()

    success_count = sum(1 for r in results if r.success)
    fail_count = len(results) - success_count

    print(f"Finished. total={len(results)} success={success_count} failed={fail_count}")
    for result in results:
        print(f"- {result.analysis_id}: {'completed' if result.success else result.error}")
    if fail_count:
        sys.exit(1)


if __name__ == "__main__":
    main()
