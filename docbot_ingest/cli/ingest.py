"""Standalone CLI for ingesting documents into a namespace.

Usage::

    python -m docbot_ingest.cli.ingest process --namespace hr-policies \\
        --file handbook.pdf [--type faq|glossary|manual]

    python -m docbot_ingest.cli.ingest classify --file handbook.pdf
    python -m docbot_ingest.cli.ingest chunk --file handbook.pdf --limit 5
    python -m docbot_ingest.cli.ingest list --namespace hr-policies
    python -m docbot_ingest.cli.ingest delete --namespace hr-policies --id <id> --yes

``classify`` and ``chunk`` run locally and need no credentials; the other
commands use the object store, embedding service and vector store
configured through the environment / ``.env``.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from docbot_ingest.config.settings import Settings

# Safety net against a server that keeps returning the same cursor.
_MAX_INVOCATIONS = 1000


def _build_services(app_settings: Settings) -> dict[str, Any]:
    """Construct the orchestrator and document service.

    Imports are deferred so ``classify`` and ``chunk`` start without
    loading the OpenAI, ChromaDB or boto3 clients.
    """
    from docbot_ingest.config.chunking import ChunkingConfig
    from docbot_ingest.config.loader import load_config
    from docbot_ingest.pipeline.orchestrator import BatchLimits, IngestionOrchestrator
    from docbot_ingest.providers.embedding.openai_embedding_provider import (
        OpenAIEmbeddingProvider,
    )
    from docbot_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider
    from docbot_ingest.services.document_service import DocumentService
    from docbot_ingest.services.manifest_service import ManifestService

    if app_settings.object_store_backend.lower() == "local":
        from docbot_ingest.providers.object_store.local_object_store import LocalObjectStore

        object_store = LocalObjectStore(app_settings.local_object_store_dir)
    else:
        from docbot_ingest.providers.object_store.s3_object_store import S3ObjectStore

        object_store = S3ObjectStore.from_settings(app_settings)

    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_prefix=app_settings.chromadb_collection_prefix,
        expected_dimension=embedding_provider.get_dimension(),
    )
    manifest_service = ManifestService(object_store)
    config = load_config(app_settings.config_path, settings=app_settings)

    return {
        "orchestrator": IngestionOrchestrator(
            object_store=object_store,
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            manifest_service=manifest_service,
            chunking_config=ChunkingConfig.from_config(config),
            limits=BatchLimits.from_settings(app_settings),
        ),
        "documents": DocumentService(
            object_store=object_store,
            vector_store=vector_store,
            embedding_provider=embedding_provider,
            manifest_service=manifest_service,
        ),
    }


def _extract(path: str):  # noqa: ANN202
    from docbot_ingest.services.extraction.page_extractor import PageExtractor

    file_path = Path(path)
    return PageExtractor().extract(file_path.read_bytes(), file_path.name)


def _load_chunking_config(app_settings: Settings):  # noqa: ANN202
    from docbot_ingest.config.chunking import ChunkingConfig
    from docbot_ingest.config.loader import load_config

    return ChunkingConfig.from_config(load_config(app_settings.config_path, settings=app_settings))


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_process(args: argparse.Namespace, app_settings: Settings) -> int:
    """Upload a local file, then invoke processing until it completes."""
    from docbot_ingest.models.ingestion import IngestionRequest

    services = _build_services(app_settings)
    file_path = Path(args.file)
    print(f"Uploading {file_path.name} to namespace '{args.namespace}'")

    upload = await services["documents"].upload(
        args.namespace, file_path.name, file_path.read_bytes()
    )
    if upload.already_exists:
        print("  File already exists in storage")
    print(f"  Object key: {upload.file_key}")

    request = IngestionRequest(
        namespace=args.namespace,
        file_key=upload.file_key,
        file_name=upload.file_name,
        document_type=args.type,
    )
    for _ in range(_MAX_INVOCATIONS):
        outcome = await services["orchestrator"].process(request)
        if not outcome.success:
            print(f"\nProcessing failed ({outcome.error}): {outcome.detail}", file=sys.stderr)
            return 1
        if outcome.completed:
            print("\nProcessing complete:")
            print(f"  Document type: {outcome.document_type}")
            print(f"  Chunks:        {outcome.chunk_count}")
            return 0

        print(f"  {outcome.message}")
        request = request.model_copy(
            update={"start_batch": outcome.next_batch, "document_type": outcome.document_type}
        )

    print("Error: processing did not converge", file=sys.stderr)
    return 1


def _handle_classify(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print the type the classifier assigns to a local file."""
    from docbot_ingest.services.chunking.classifier import classify, count_faq_matches

    document = _extract(args.file)
    config = _load_chunking_config(app_settings)
    sample = document.text[: app_settings.sample_chars]
    doc_type = classify(
        sample,
        hint=args.type,
        total_pages=document.total_pages,
        thresholds=config.classifier,
    )

    print(f"File:          {args.file}")
    print(f"Pages:         {document.total_pages}")
    print(f"Blocks:        {len(document.blocks)}")
    print(f"FAQ matches:   {count_faq_matches(sample)}")
    print(f"Document type: {doc_type.value} (strategy: {doc_type.strategy})")
    return 0


def _handle_chunk(args: argparse.Namespace, app_settings: Settings) -> int:
    """Preview the chunks a local file would produce."""
    from docbot_ingest.models.documents import EffectiveDocType
    from docbot_ingest.services.chunking.classifier import classify
    from docbot_ingest.services.chunking.router import ChunkRouter

    document = _extract(args.file)
    config = _load_chunking_config(app_settings)
    if args.as_type:
        doc_type = EffectiveDocType(args.as_type)
    else:
        doc_type = classify(
            document.text[: app_settings.sample_chars],
            hint=args.type,
            total_pages=document.total_pages,
            thresholds=config.classifier,
        )

    result = ChunkRouter(config).route(document.blocks, doc_type, args.namespace)
    print(f"Document type: {result.document_type.value} | Chunks: {len(result)}")
    print("=" * 60)
    for index, chunk in enumerate(result.chunks[: args.limit]):
        label = chunk.chunk_type.value
        print(f"[{index}] {label} ({len(chunk.text)} chars)")
        preview = chunk.text if len(chunk.text) <= 300 else chunk.text[:300] + "..."
        print(preview)
        print("-" * 60)
    if len(result) > args.limit:
        print(f"... {len(result) - args.limit} more")
    return 0


async def _handle_list(args: argparse.Namespace, app_settings: Settings) -> int:
    services = _build_services(app_settings)
    page = await services["documents"].list_documents(args.namespace, args.page, args.per_page)

    print(f"Namespace '{args.namespace}': {page.total} documents (page {page.page}/{page.total_pages})")
    for entry in page.documents:
        print(
            f"  {entry.id}  {entry.source:<40} {entry.document_type or '-':<10} "
            f"{entry.chunk_count if entry.chunk_count is not None else '-':>6}  {entry.created_at}"
        )
    return 0


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    """Delete a document's vectors, stored object and manifest entry."""
    if not args.yes:
        confirm = input(f"  Delete {args.id} from '{args.namespace}'? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    services = _build_services(app_settings)
    deleted = await services["documents"].delete_document(args.namespace, args.id)
    print(f"Deleted {args.id} ({deleted} vectors removed)")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docbot_ingest.cli.ingest",
        description="Ingest PDF/DOCX documents into namespaced vector collections.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    hint_choices = ["faq", "glossary", "manual"]

    process_parser = subparsers.add_parser("process", help="Upload and fully process a file")
    process_parser.add_argument("--namespace", required=True, help="Target namespace")
    process_parser.add_argument("--file", required=True, help="Path to a .pdf or .docx file")
    process_parser.add_argument("--type", choices=hint_choices, help="Document type hint")

    classify_parser = subparsers.add_parser("classify", help="Show the detected document type")
    classify_parser.add_argument("--file", required=True, help="Path to a .pdf or .docx file")
    classify_parser.add_argument("--type", choices=hint_choices, help="Document type hint")

    chunk_parser = subparsers.add_parser("chunk", help="Preview the chunks of a file")
    chunk_parser.add_argument("--file", required=True, help="Path to a .pdf or .docx file")
    chunk_parser.add_argument("--type", choices=hint_choices, help="Document type hint")
    chunk_parser.add_argument(
        "--as",
        dest="as_type",
        choices=["faq_qa", "faq_glossary", "glossary", "manual", "standard"],
        help="Skip classification and chunk as this type",
    )
    chunk_parser.add_argument("--namespace", help="Apply this namespace's chunking overrides")
    chunk_parser.add_argument("--limit", type=int, default=10, help="Chunks to print (default: 10)")

    list_parser = subparsers.add_parser("list", help="List documents in a namespace")
    list_parser.add_argument("--namespace", required=True)
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--per-page", dest="per_page", type=int, default=20)

    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("--namespace", required=True)
    delete_parser.add_argument("--id", required=True, help="Manifest id or object key")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    if args.command == "classify":
        exit_code = _handle_classify(args, app_settings)
    elif args.command == "chunk":
        exit_code = _handle_chunk(args, app_settings)
    elif args.command == "process":
        exit_code = asyncio.run(_handle_process(args, app_settings))
    elif args.command == "list":
        exit_code = asyncio.run(_handle_list(args, app_settings))
    elif args.command == "delete":
        exit_code = asyncio.run(_handle_delete(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
