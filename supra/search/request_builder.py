"""Assemble backend requests from the catalog, the query and the conversation context."""

import json
from typing import Sequence

from supra.catalog.projector import records_to_json
from supra.config import get_settings
from supra.models.search import (
    BackendRequest,
    ImageDescriptor,
    SearchRecord,
    SelectionEntry,
)
from supra.search.prompts import (
    IMAGE_INSTRUCTIONS,
    IMAGE_SEARCH_HEADER,
    PREFERENCES_BLOCK,
    PRIOR_SELECTION_BLOCK,
    SEARCH_PROMPT,
    SELECTION_OUTPUT_FORMAT,
    SELECTION_POLICY,
    TEXT_SEARCH_HEADER,
    TURN_INTERPRETATION_PROMPT,
)


def _format_selection(entries: Sequence[SelectionEntry]) -> str:
    return json.dumps(
        [entry.model_dump(exclude_none=True) for entry in entries],
        ensure_ascii=False,
        indent=2,
    )


def _context_sections(
    image: ImageDescriptor | None,
    prior_selection: Sequence[SelectionEntry] | None,
    preferences: str,
) -> str:
    sections = []
    if image is not None:
        sections.append(IMAGE_INSTRUCTIONS)
    if prior_selection:
        sections.append(PRIOR_SELECTION_BLOCK.format(selection=_format_selection(prior_selection)))
    if preferences:
        sections.append(PREFERENCES_BLOCK.format(preferences=preferences))
    return "\n\n".join(sections)


class RequestBuilder:
    """Build BackendRequests for the selection search and for turn interpretation."""

    def __init__(self, model: str | None = None, temperature: float | None = None):
        settings = get_settings()
        self.model = model or settings.openai_model
        self.temperature = (
            settings.inference_temperature if temperature is None else temperature
        )

    def _request(self, prompt: str, image: ImageDescriptor | None) -> BackendRequest:
        contents: list[ImageDescriptor | str] = []
        if image is not None:
            contents.append(image)
        contents.append(prompt)
        return BackendRequest(
            model=self.model,
            contents=contents,
            response_format="json",
            temperature=self.temperature,
        )

    def build_search_request(
        self,
        query: str,
        records: Sequence[SearchRecord],
        image: ImageDescriptor | None = None,
        prior_selection: Sequence[SelectionEntry] | None = None,
        preferences: str = "",
        limit: int = 10,
    ) -> BackendRequest:
        """Build the request asking for the complete selection after this turn.

        The full catalog is serialized verbatim; the backend does the matching.
        """
        if image is not None:
            header = IMAGE_SEARCH_HEADER.format(query=query or "None", limit=limit)
        else:
            header = TEXT_SEARCH_HEADER.format(query=query, limit=limit)

        prompt = SEARCH_PROMPT.format(
            header=header,
            query=query,
            catalog=json.dumps(records_to_json(records), ensure_ascii=False, indent=2),
            sections=_context_sections(image, prior_selection, preferences),
            policy=SELECTION_POLICY.format(limit=limit),
            output_format=SELECTION_OUTPUT_FORMAT.format(),
        )
        return self._request(prompt, image)

    def build_interpretation_request(
        self,
        query: str,
        records: Sequence[SearchRecord],
        image: ImageDescriptor | None = None,
        prior_selection: Sequence[SelectionEntry] | None = None,
        constraints: Sequence[str] | None = None,
        preferences: str = "",
        limit: int = 10,
    ) -> BackendRequest:
        """Build the request asking the backend to classify one conversation turn."""
        standing = [c for c in (constraints or []) if c]
        if preferences:
            standing.append(preferences)

        prompt = TURN_INTERPRETATION_PROMPT.format(
            query=query,
            catalog=json.dumps(records_to_json(records), ensure_ascii=False, indent=2),
            sections=_context_sections(image, prior_selection, "; ".join(standing)),
            limit=limit,
        )
        return self._request(prompt, image)
