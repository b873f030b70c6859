"""Load and validate the YAML screen flow. Used by screens and the message catalog."""

import os
from pathlib import Path

import yaml


def _flows_dir() -> Path:
    """Return the packaged flows directory (contactdeck/flows)."""
    return Path(__file__).resolve().parent.parent / "flows"


def get_flow_path() -> Path:
    """Return path to the screen flow YAML (SCREEN_FLOW_PATH env or flows/screens.yaml)."""
    default = _flows_dir() / "screens.yaml"
    path = os.environ.get("SCREEN_FLOW_PATH", "").strip()
    if path:
        return Path(path).resolve()
    return default


def load_flow(path: Path | None = None) -> dict:
    """Load flow YAML and return the flow dict. Validates minimal structure."""
    if path is None:
        path = get_flow_path()
    raw = path.read_text(encoding="utf-8")
    flow = yaml.safe_load(raw)
    if not isinstance(flow, dict):
        raise ValueError("Flow YAML must be a dict")
    if "screens" not in flow or not flow["screens"]:
        raise ValueError("Flow must have a non-empty 'screens' list")
    if "start_screen" not in flow:
        raise ValueError("Flow must have 'start_screen'")
    screen_ids = {s["id"] for s in flow["screens"] if isinstance(s, dict) and "id" in s}
    if not screen_ids:
        raise ValueError("Flow screens must have 'id'")
    if flow["start_screen"] not in screen_ids:
        raise ValueError(f"start_screen '{flow['start_screen']}' must be a screen id")
    for screen in flow["screens"]:
        if not isinstance(screen, dict):
            continue
        sid = screen.get("id")
        if not sid:
            raise ValueError("Every screen must have 'id'")
        seen_events: set[str] = set()
        for edge in screen.get("edges") or []:
            if not isinstance(edge, dict):
                continue
            event = edge.get("event")
            next_id = edge.get("next")
            if not event:
                raise ValueError(f"Screen '{sid}' has an edge without 'event'")
            if event in seen_events:
                raise ValueError(f"Screen '{sid}' has more than one edge for '{event}'")
            seen_events.add(event)
            if next_id not in screen_ids:
                raise ValueError(
                    f"Screen '{sid}' edge references unknown screen '{next_id}'"
                )
    if not flow.get("messages"):
        flow["messages"] = {}
    return flow


# Module-level cache for loaded flow
_flow_cache: dict | None = None


def get_flow(cache: bool = True) -> dict:
    """Load flow (cached by default). Pass cache=False to reload."""
    global _flow_cache
    if cache and _flow_cache is not None:
        return _flow_cache
    _flow_cache = load_flow()
    return _flow_cache


def format_message(flow: dict, message_id: str, params: dict | None = None) -> str:
    """Return catalog text for message_id with {key} placeholders filled from params."""
    text = (flow.get("messages") or {}).get(message_id) or message_id
    for k, v in (params or {}).items():
        text = text.replace("{" + k + "}", str(v) if v is not None else "")
    return text
