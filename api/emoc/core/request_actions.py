"""Request-level side actions: cancel, change champion, change team, extend.

Each action checks its input, refuses a Closed or Cancelled request and
returns a new snapshot together with the audit changes it made. Stage and
task state is never touched by these actions.
"""
import logging
from datetime import date
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

from emoc.core.errors import InvalidActionInput
from emoc.core.reference_data import (
    CANCELLATION_CATEGORIES,
    CHAMPION_IDS,
    LENGTH_OF_CHANGE_OPTIONS,
    PersonDirectory,
    default_directory,
    get_area,
    option_name,
    unit_belongs_to_area,
)
from emoc.core.workflow_engine import cancel_request, ensure_not_terminal
from emoc.schemas.moc_request import (
    CancelRequestInput,
    ChangeChampionInput,
    ChangeTeamInput,
    ExtendTemporaryInput,
)
from emoc.schemas.workflow import MOCRequestState

logger = logging.getLogger(__name__)

ActionResult = Tuple[MOCRequestState, dict]


def cancel(state: MOCRequestState, data: CancelRequestInput) -> ActionResult:
    ensure_not_terminal(state)
    category = option_name(CANCELLATION_CATEGORIES, data.category)
    if not category:
        raise InvalidActionInput("category", "unknown cancellation category")
    if not data.acknowledge_impact:
        raise InvalidActionInput("acknowledge_impact", "the impact of cancelling must be acknowledged")
    if not data.confirm_cancellation:
        raise InvalidActionInput("confirm_cancellation", "the cancellation must be confirmed")

    result = cancel_request(state, f"{category}: {data.reason}")
    changes = {
        "status": {"old": state.status.value, "new": result.state.status.value},
        "category": category,
        "reason": data.reason,
    }
    return result.state, changes


def change_champion(
    state: MOCRequestState,
    data: ChangeChampionInput,
    directory: PersonDirectory = default_directory,
) -> ActionResult:
    ensure_not_terminal(state)
    if data.new_champion_id not in CHAMPION_IDS:
        raise InvalidActionInput("new_champion_id", "not an eligible champion")
    new_name = directory.name_of(data.new_champion_id)
    if new_name == state.champion_name:
        raise InvalidActionInput("new_champion_id", "already the champion of this request")

    working = state.model_copy(deep=True)
    working.champion_name = new_name
    changes = {
        "champion_name": {"old": state.champion_name, "new": new_name},
        "effective_date": data.effective_date.isoformat(),
        "reason": data.reason,
    }
    logger.info("MOC %s: champion changed to %s", state.moc_no, new_name)
    return working, changes


def change_team(state: MOCRequestState, data: ChangeTeamInput) -> ActionResult:
    ensure_not_terminal(state)
    if get_area(data.new_area_id) is None:
        raise InvalidActionInput("new_area_id", "unknown area")
    if not unit_belongs_to_area(data.new_unit_id, data.new_area_id):
        raise InvalidActionInput("new_unit_id", "unit does not belong to the selected area")
    if data.new_area_id == state.area_id and data.new_unit_id == state.unit_id:
        raise InvalidActionInput("new_unit_id", "request already belongs to this area and unit")

    working = state.model_copy(deep=True)
    working.area_id = data.new_area_id
    working.unit_id = data.new_unit_id
    changes = {
        "area_id": {"old": state.area_id, "new": data.new_area_id},
        "unit_id": {"old": state.unit_id, "new": data.new_unit_id},
        "reason": data.reason,
    }
    logger.info("MOC %s: moved to %s / %s", state.moc_no, data.new_area_id, data.new_unit_id)
    return working, changes


def extended_end_date(current_end: date, data: ExtendTemporaryInput) -> Optional[date]:
    """New end date from an explicit date or a months/days extension."""
    if data.new_end_date is not None:
        return data.new_end_date
    if data.extend_months or data.extend_days:
        return current_end + relativedelta(months=data.extend_months, days=data.extend_days)
    return None


def extend_temporary(state: MOCRequestState, data: ExtendTemporaryInput) -> ActionResult:
    ensure_not_terminal(state)
    if option_name(LENGTH_OF_CHANGE_OPTIONS, state.length_of_change) != "Temporary":
        raise InvalidActionInput("length_of_change", "only temporary changes can be extended")

    current_end = state.details.estimated_end
    if current_end is None:
        raise InvalidActionInput("estimated_end", "request has no end date to extend")

    new_end = extended_end_date(current_end, data)
    if new_end is None:
        raise InvalidActionInput("new_end_date", "a new end date or an extension period is required")
    if new_end <= current_end:
        raise InvalidActionInput("new_end_date", "new end date must be after the current end date")

    working = state.model_copy(deep=True)
    working.details.estimated_end = new_end
    changes = {
        "estimated_end": {"old": current_end.isoformat(), "new": new_end.isoformat()},
        "reason": data.reason,
    }
    logger.info("MOC %s: temporary change extended to %s", state.moc_no, new_end.isoformat())
    return working, changes
