#!/usr/bin/env python
"""Load a document and ask questions about it from the command line.

Usage:
    python scripts/ask_document.py report.pdf                       # Index only, show stats
    python scripts/ask_document.py notes.txt -q "What is the deadline?"
    python scripts/ask_document.py book.docx --chunk-size large -q "Who is the narrator?" --top-k 5
"""
import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docqa import config
from docqa.errors import DocQAError
from docqa.models import DocumentFile
from docqa.rag.extractor import resolve_media_type
from docqa.session import DocumentSession
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int):
        """Update embedding progress."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% ({current}/{total} chunks)",
            end="",
            flush=True,
        )

        if self.verbose:
            print()  # New line for verbose mode

    def finish(self, document):
        """Finish progress reporting."""
        print("\n")  # New line after progress bar
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print(f"  Document Ready!")
        print(f"{'=' * 60}\n")
        print(f"  📄 Name:                 {document.name}")
        print(f"  📑 Pages:                {document.page_count}")
        print(f"  🔤 Words:                {document.word_count}")
        print(f"  📝 Chunks created:       {document.chunk_count}")
        print(f"  🧮 Embeddings generated: {document.embedding_count}")
        print(f"  ⏱️  Time elapsed:         {elapsed_seconds:.1f}s")

        print(f"\n{'=' * 60}\n")

        missing = document.chunk_count - document.embedding_count
        if missing > 0:
            print(f"⚠️  Warning: {missing} chunk(s) could not be embedded and will not be searched.")
            print(f"   Check logs for details.\n")


async def main():
    """Main entry point for the ask script."""
    parser = argparse.ArgumentParser(
        description="Ask questions about a document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ask_document.py notes.txt
  python scripts/ask_document.py notes.txt -q "What is the deadline?"
  python scripts/ask_document.py book.docx --chunk-size large -q "Who is the narrator?"
        """,
    )

    parser.add_argument("path", type=Path, help="Document to load (.txt, .pdf or .docx)")

    parser.add_argument(
        "--question",
        "-q",
        action="append",
        default=[],
        help="Question to ask (repeatable)",
    )

    parser.add_argument(
        "--chunk-size",
        choices=sorted(config.CHUNK_SIZE_PRESETS),
        default="medium",
        help="Chunk size preset (default: medium)",
    )

    parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help=f"Chunks used as context (default: {config.RETRIEVAL_TOP_K})",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )

    args = parser.parse_args()

    progress = ProgressReporter(verbose=args.verbose)
    session = DocumentSession()

    try:
        if not args.path.is_file():
            raise FileNotFoundError(f"Document not found: {args.path}")

        if args.path.stat().st_size > config.MAX_UPLOAD_BYTES:
            print(f"\n❌ Error: {args.path.name} is larger than {config.MAX_UPLOAD_BYTES} bytes\n")
            sys.exit(1)

        print("\n📋 Configuration:")
        print(f"   Embedding model:  {config.EMBEDDING_MODEL}")
        print(f"   Chunk size:       {config.CHUNK_SIZE_PRESETS[args.chunk_size]} chars")
        print(f"   Chunk overlap:    {config.CHUNK_OVERLAP} chars")
        print(f"   Top-K retrieval:  {args.top_k or config.RETRIEVAL_TOP_K}")

        progress.start(f"Processing {args.path.name}")

        file = DocumentFile(
            name=args.path.name,
            content=args.path.read_bytes(),
            media_type=resolve_media_type(args.path.name),
        )
        document = await session.upload_document(
            file,
            chunk_size=args.chunk_size,
            progress_callback=progress.update,
        )
        progress.finish(document)

        for question in args.question:
            answer = await session.ask_question(question, top_k=args.top_k)

            print(f"❓ {question}\n")
            print(answer.text)
            print("\n   Sources:")
            for source in answer.sources:
                page = f"page {source.page_number}" if source.page_number else "page ?"
                print(f"   - {page}, score {source.score:.3f}: {source.text[:80]}...")
            print()

    except KeyboardInterrupt:
        print("\n\n⚠️  Cancelled by user.\n")
        sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except DocQAError as e:
        print(f"\n❌ Error: {e.message}\n")
        logger.error("ask_script_failed", error=e.message, error_type=type(e).__name__)
        sys.exit(1)

    finally:
        await session.embedding_service.close()


if __name__ == "__main__":
    asyncio.run(main())
