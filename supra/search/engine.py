"""Multimodal dish search orchestrator."""

import asyncio
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Sequence

import structlog

from supra.catalog.projector import project
from supra.catalog.provider import CatalogProvider
from supra.config import Settings, get_settings
from supra.metrics import record_image_ingestion, record_search_request
from supra.models.catalog import Restaurant
from supra.models.search import (
    ImageDescriptor,
    ImageUpload,
    SearchOutcome,
    SearchRecord,
    SelectionEntry,
    SelectionResponse,
    TurnInterpretation,
)
from supra.models.state import SelectionContext
from supra.search.errors import (
    ImageIngestionError,
    ImageNotFoundError,
    ImageTooLargeError,
    InferenceError,
    InvalidInputError,
)
from supra.search.images import ingest_image, temporary_upload
from supra.search.inference import (
    InferenceClient,
    parse_selection_response,
    parse_turn_interpretation,
)
from supra.search.reconcile import reconcile, resolve_entries
from supra.search.request_builder import RequestBuilder

logger = structlog.get_logger()

ImageInput = str | Path | ImageUpload | None

INGESTION_OUTCOMES = {
    InvalidInputError: "invalid_input",
    ImageNotFoundError: "not_found",
    ImageTooLargeError: "too_large",
}


@asynccontextmanager
async def image_source(image: ImageInput) -> AsyncIterator[str | Path | None]:
    """Yield a filesystem path for the image, spilling uploads to a temp file.

    The temp file lives exactly as long as the with-block, whatever happens
    inside it.
    """
    if isinstance(image, ImageUpload):
        async with temporary_upload(image.data, image.filename) as path:
            yield path
    else:
        yield image or None


def _dedupe_and_cap(response: SelectionResponse, limit: int) -> SelectionResponse:
    seen: set[tuple[str, str]] = set()
    results: list[SelectionEntry] = []
    for entry in response.results:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        results.append(entry)
    return response.model_copy(update={"results": results[:limit]})


class SupraSearchEngine:
    """Search the dish catalog with text and/or an image.

    Holds no catalog state: every call fetches a fresh snapshot from the
    catalog provider and resends it to the stateless backend.
    """

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        inference_client: InferenceClient | None = None,
        request_builder: RequestBuilder | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.catalog_provider = catalog_provider
        self.inference = inference_client or InferenceClient()
        self.request_builder = request_builder or RequestBuilder(
            model=self.settings.openai_model,
            temperature=self.settings.inference_temperature,
        )

    def _clamp_limit(self, limit: int | None) -> int:
        if not limit:
            return self.settings.default_limit
        return max(1, min(limit, self.settings.max_limit))

    async def _ingest(self, image_path: str | Path | None) -> ImageDescriptor | None:
        """Ingest the optional image; failures degrade to text-only search."""
        if image_path is None:
            return None
        try:
            # Blocking read of up to max_image_bytes
            descriptor = await asyncio.to_thread(
                ingest_image,
                image_path,
                max_bytes=self.settings.max_image_bytes,
                extended=self.settings.extended_image_types,
            )
        except ImageIngestionError as e:
            record_image_ingestion(INGESTION_OUTCOMES.get(type(e), "error"))
            logger.warning(
                "image_ingestion_failed",
                error=str(e),
                error_type=type(e).__name__,
                fallback="text_only",
            )
            return None

        record_image_ingestion("ok")
        return descriptor

    async def _snapshot(self) -> tuple[list[Restaurant], list[SearchRecord]]:
        restaurants = await self.catalog_provider.list_restaurants_with_dishes()
        return restaurants, project(restaurants)

    async def _run_search(
        self,
        query: str,
        image: ImageInput,
        preferences: str,
        limit: int,
        prior_selection: Sequence[SelectionEntry] | None,
    ) -> tuple[SearchOutcome, list[Restaurant]]:
        start_time = time.time()
        limit = self._clamp_limit(limit)
        restaurants: list[Restaurant] = []

        logger.info(
            "search_started",
            query=query[:80],
            has_image=image is not None,
            has_preferences=bool(preferences),
            limit=limit,
        )

        try:
            async with image_source(image) as image_path:
                descriptor = await self._ingest(image_path)
                restaurants, records = await self._snapshot()
                request = self.request_builder.build_search_request(
                    query=query,
                    records=records,
                    image=descriptor,
                    prior_selection=prior_selection,
                    preferences=preferences,
                    limit=limit,
                )
                raw = await self.inference.invoke(request)
                response = _dedupe_and_cap(parse_selection_response(raw.text), limit)

        except InferenceError as e:
            logger.error("search_failed", error=str(e), error_type="InferenceError")
            record_search_request("selection", "error", time.time() - start_time, 0)
            return SearchOutcome.error(str(e)), restaurants

        except Exception as e:
            logger.error("search_failed", error=str(e), error_type=type(e).__name__)
            record_search_request("selection", "error", time.time() - start_time, 0)
            return SearchOutcome.error(f"Search failed: {e}"), restaurants

        record_search_request(
            "selection", "success", time.time() - start_time, len(response.results)
        )
        logger.info(
            "search_complete",
            result_count=len(response.results),
            operation=response.operation_performed,
        )
        return SearchOutcome.success(response), restaurants

    async def search(
        self,
        query: str = "",
        image: ImageInput = None,
        preferences: str = "",
        limit: int = 10,
        prior_selection: Sequence[SelectionEntry] | None = None,
    ) -> SearchOutcome:
        """Run one selection search against the backend.

        Never raises: backend and catalog failures come back as
        SearchOutcome(status="error", message=...). Image problems are
        logged and the search continues text-only.

        Args:
            query: Free-text user request
            image: Image path, uploaded buffer, or None
            preferences: Standing preferences and allergies
            limit: Maximum number of dishes to return
            prior_selection: Selection from earlier turns

        Returns:
            SearchOutcome with the complete selection after this turn
        """
        outcome, _ = await self._run_search(query, image, preferences, limit, prior_selection)
        return outcome

    async def search_restaurants(
        self,
        query: str = "",
        image: ImageInput = None,
        preferences: str = "",
        limit: int = 10,
        prior_selection: Sequence[SelectionEntry] | None = None,
    ) -> list[Restaurant]:
        """Search, then prune the same catalog snapshot to the selected dishes."""
        outcome, restaurants = await self._run_search(
            query, image, preferences, limit, prior_selection
        )
        return reconcile(outcome, restaurants)

    async def search_stream(
        self,
        query: str = "",
        image: ImageInput = None,
        preferences: str = "",
        limit: int = 10,
        prior_selection: Sequence[SelectionEntry] | None = None,
    ) -> AsyncIterator[str]:
        """Yield raw backend text fragments; their concatenation is the JSON answer.

        The uploaded image's temp file is released when the stream ends or
        the consumer closes it.

        Raises:
            InferenceError: Backend call failed or the stream broke off
        """
        limit = self._clamp_limit(limit)
        async with image_source(image) as image_path:
            descriptor = await self._ingest(image_path)
            _, records = await self._snapshot()
            request = self.request_builder.build_search_request(
                query=query,
                records=records,
                image=descriptor,
                prior_selection=prior_selection,
                preferences=preferences,
                limit=limit,
            )
            stream = self.inference.invoke_stream(request)
            try:
                async for fragment in stream:
                    yield fragment
            finally:
                await stream.aclose()

    async def interpret_turn(
        self,
        query: str,
        context: SelectionContext,
        image: ImageInput = None,
        preferences: str = "",
        limit: int = 10,
    ) -> tuple[TurnInterpretation, list[Restaurant]]:
        """Ask the backend what this conversation turn is about.

        The returned interpretation only carries dishes that exist in the
        catalog snapshot, which is returned alongside it.

        Raises:
            InferenceError: Backend failed or answered with invalid JSON
        """
        limit = self._clamp_limit(limit)
        async with image_source(image) as image_path:
            descriptor = await self._ingest(image_path)
            restaurants, records = await self._snapshot()
            request = self.request_builder.build_interpretation_request(
                query=query,
                records=records,
                image=descriptor,
                prior_selection=context.entries,
                constraints=context.constraints,
                preferences=preferences,
                limit=limit,
            )
            raw = await self.inference.invoke(request, operation="turn_interpretation")

        interpretation = parse_turn_interpretation(raw.text)
        resolved = resolve_entries(interpretation.results, records, interpretation.category)
        interpretation = interpretation.model_copy(update={"results": resolved})

        logger.info(
            "turn_interpreted",
            intent=interpretation.intent,
            category=interpretation.category,
            candidates=len(resolved),
        )
        return interpretation, restaurants
