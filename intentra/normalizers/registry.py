"""Tool normalizer registry for platform-specific event tables."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from intentra.models import Event
from intentra.normalizers.fields import extract_event
from intentra.normalizers.mcp import MCPExtractor, extract_generic_mcp
from intentra.normalizers.platforms import claude, copilot, cursor, gemini, windsurf
from intentra.normalizers.types import UnifiedEventType


@dataclass(frozen=True)
class ToolNormalizer:
    tool: str
    table: Mapping[str, UnifiedEventType]
    extract_mcp: MCPExtractor

    def normalize_event_type(self, native: str) -> UnifiedEventType:
        return self.table.get(native, UnifiedEventType.UNKNOWN)

    def normalize(self, raw: dict[str, Any], native: str, tool: str | None = None) -> Event:
        """Normalize one raw payload; `tool` overrides the label for generic use."""
        normalized_type = self.normalize_event_type(native)
        return extract_event(raw, tool or self.tool, native, normalized_type, self.extract_mcp)


GENERIC_NORMALIZER = ToolNormalizer(
    tool="",
    table=MappingProxyType({}),
    extract_mcp=extract_generic_mcp,
)


def _build(module: Any) -> ToolNormalizer:
    return ToolNormalizer(
        tool=module.TOOL,
        table=MappingProxyType(dict(module.EVENT_MAP)),
        extract_mcp=module.extract_mcp,
    )


NORMALIZERS: Mapping[str, ToolNormalizer] = MappingProxyType(
    {normalizer.tool: normalizer for normalizer in map(_build, (claude, cursor, gemini, copilot, windsurf))}
)

SUPPORTED_TOOLS = tuple(NORMALIZERS)


def get_normalizer(tool: str) -> ToolNormalizer:
    """Return the tool's normalizer, or the generic one for unregistered tools."""
    return NORMALIZERS.get(tool, GENERIC_NORMALIZER)


def normalize_event_type(tool: str, native: str) -> UnifiedEventType:
    return get_normalizer(tool).normalize_event_type(native)


def normalize_event(raw: dict[str, Any], tool: str, native: str) -> Event:
    return get_normalizer(tool).normalize(raw, native, tool=tool)
