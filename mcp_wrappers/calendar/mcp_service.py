"""
MCP wrapper for the calendar service.

This module exposes the calendar service as MCP tools. Each tool makes an
HTTP call to the calendar service and converts the Pydantic response back
into the engine's dataclasses where a structured result is returned.
"""
from __future__ import annotations

import os
import typing as t

import httpx
from fastmcp import FastMCP

# Import engine dataclasses for the MCP interface
from calendar_engine.models import PlanningItem, PlanningView
# Import Pydantic models for HTTP serialization
from services.shared.models import (
    LoadResponse,
    MonthRequest,
    NavigateRequest,
    PlanningItemModel,
    PlanningViewResponse,
)


mcp = FastMCP("CalendarMCPWrapper")

# Service URL - configurable via environment variable
CALENDAR_SERVICE_URL = os.getenv("CALENDAR_SERVICE_URL", "http://localhost:8004")

# Loading a month waits on the tracker API; reads are served from memory
LOAD_TIMEOUT = 60.0
STANDARD_TIMEOUT = 30.0


def _http_client(timeout: float) -> httpx.Client:
    return httpx.Client(base_url=CALENDAR_SERVICE_URL, timeout=timeout)


def _call(method: str, path: str, timeout: float, **kwargs: t.Any) -> dict[str, t.Any]:
    try:
        with _http_client(timeout) as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
        return response.json()
    except httpx.TimeoutException:
        raise RuntimeError(f"Calendar service call {path} timed out after {timeout} seconds")
    except httpx.HTTPStatusError as e:
        raise RuntimeError(f"HTTP error from calendar service: {e.response.status_code} {e.response.text}")
    except Exception as e:
        raise RuntimeError(f"Error calling calendar service: {str(e)}")


def _load_calendar_month(year: int, month: int) -> dict[str, t.Any]:
    """
    Load a month into the calendar service.

    Returns a summary with the active month, whether the load was applied
    and how many days the new model holds.
    """
    request = MonthRequest(year=year, month=month)
    result = LoadResponse(**_call("POST", "/calendar/load", LOAD_TIMEOUT, json=request.model_dump()))
    return result.model_dump()


def _navigate_calendar_month(direction: t.Literal["prev", "next"]) -> dict[str, t.Any]:
    """Move the calendar service to the previous or next month."""
    request = NavigateRequest(direction=direction)
    result = LoadResponse(**_call("POST", "/calendar/navigate", LOAD_TIMEOUT, json=request.model_dump()))
    return result.model_dump()


def _get_planning_view(year: t.Optional[int] = None, month: t.Optional[int] = None) -> PlanningView:
    """Fetch the planning view of a month (default: the active month)."""
    params = {key: value for key, value in (("year", year), ("month", month)) if value is not None}
    response = PlanningViewResponse(**_call("GET", "/calendar/planning", STANDARD_TIMEOUT, params=params))
    return _pydantic_to_dataclass_view(response)


def _show_planning(year: t.Optional[int] = None, month: t.Optional[int] = None) -> str:
    """Display the planning list as text: upcoming items, then recent past ones."""
    params = {key: value for key, value in (("year", year), ("month", month)) if value is not None}
    response = PlanningViewResponse(**_call("GET", "/calendar/planning", STANDARD_TIMEOUT, params=params))

    if not response.scheduled and not response.history:
        return (
            f"📅 {response.label}: no timetable for this month. "
            "The schedule appears here after it is approved and sent."
        )

    lines = [f"📅 PLANNING - {response.label}", "=" * 60]
    if response.scheduled:
        lines.append("Scheduled (this month):")
        lines.extend(f"  {item.label}" for item in response.scheduled)
    if response.recent_history:
        if response.scheduled:
            lines.append("")
        lines.append("Past:")
        lines.extend(f"  {item.label}  (done)" for item in response.recent_history)
    lines.append("=" * 60)
    lines.append(
        f"Total: {sum(item.hours for item in response.scheduled)} hr(s) scheduled, "
        f"{sum(item.hours for item in response.history)} hr(s) taught"
    )
    return "\n".join(lines)


def _pydantic_to_dataclass_item(item: PlanningItemModel) -> PlanningItem:
    return PlanningItem(
        date=item.date,
        hours=item.hours,
        subject=item.subject,
        status=item.status,
        batch=item.batch,
    )


def _pydantic_to_dataclass_view(response: PlanningViewResponse) -> PlanningView:
    """
    Convert a Pydantic planning response to the engine's PlanningView.

    The recent_history slice is derived data and is not carried over.
    """
    return PlanningView(
        scheduled=tuple(_pydantic_to_dataclass_item(item) for item in response.scheduled),
        history=tuple(_pydantic_to_dataclass_item(item) for item in response.history),
    )


# MCP tool wrappers that call the raw functions
@mcp.tool()
def load_calendar_month(year: int, month: int) -> dict[str, t.Any]:
    """Loads the teaching calendar for a month."""
    return _load_calendar_month(year, month)


@mcp.tool()
def navigate_calendar_month(direction: t.Literal["prev", "next"]) -> dict[str, t.Any]:
    """Moves the teaching calendar to the previous or next month."""
    return _navigate_calendar_month(direction)


@mcp.tool()
def get_planning_view(year: t.Optional[int] = None, month: t.Optional[int] = None) -> PlanningView:
    """Returns scheduled and past planning items of a month."""
    return _get_planning_view(year, month)


@mcp.tool()
def show_planning(year: t.Optional[int] = None, month: t.Optional[int] = None) -> str:
    """Displays the planning list of a month in a readable format."""
    return _show_planning(year, month)


if __name__ == "__main__":
    mcp.run()
