from __future__ import annotations

import logging
import time
from typing import Callable

from influencia.domain.models import DispatchOutcome, DispatchRequest, TransientFailure
from influencia.orchestration.dispatch import DispatchEngine
from influencia.utils.cancellation import CancelToken

logger = logging.getLogger(__name__)

MAX_RETRY_ATTEMPTS = 3
BASE_RETRY_DELAY_S = 2.0


def is_retryable(outcome: DispatchOutcome) -> bool:
    return isinstance(outcome, TransientFailure) and outcome.code != "cancelled"


def dispatch_with_retry(
    engine: DispatchEngine,
    request: DispatchRequest,
    *,
    attempts: int = MAX_RETRY_ATTEMPTS,
    base_delay_s: float = BASE_RETRY_DELAY_S,
    cancel: CancelToken | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DispatchOutcome:
    """Re-invoke `dispatch` on transient failures with exponential backoff.

    Authentication-required and permanent outcomes come back immediately: the
    first needs a human to scan the QR code, the second will not improve.
    With a `cancel` token the backoff waits on it, and a fired token ends the
    loop with the last outcome.
    """
    outcome = engine.dispatch(request, cancel=cancel)
    for attempt in range(2, attempts + 1):
        if not is_retryable(outcome):
            return outcome
        delay = base_delay_s * (2 ** (attempt - 2))
        logger.info(
            "Transient dispatch failure (%s); retrying attempt %s/%s in %.1fs",
            outcome.reason,
            attempt,
            attempts,
            delay,
        )
        if cancel is None:
            sleep(delay)
        elif cancel.wait(delay):
            logger.info("Retry of %s abandoned: cancelled during backoff", request.registrant_id)
            return outcome
        outcome = engine.dispatch(request, cancel=cancel)
    return outcome
