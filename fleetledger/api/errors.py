"""Translate engine errors into HTTP errors."""

import logging

from fastapi import HTTPException

from fleetledger.errors import (
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    LoanEngineError,
    NonConvergentLoanError,
    PaymentTooEarlyError,
    ScheduleConflictError,
)

logger = logging.getLogger(__name__)


def to_http_error(e: LoanEngineError) -> HTTPException:
    if isinstance(e, InstallmentNotFoundError):
        status = 404
    elif isinstance(e, (InstallmentAlreadyPaidError, PaymentTooEarlyError, ScheduleConflictError)):
        status = 409
    elif isinstance(e, NonConvergentLoanError):
        status = 422
    else:
        status = 400
    logger.info("Rejected loan request (%d): %s", status, e)
    return HTTPException(status_code=status, detail=str(e))
