"""
Achievements API Blueprint

Issues signed credentials for earned achievements.
"""

from __future__ import annotations

from typing import Any, Tuple

from flask import Blueprint, request

from badgeledger.core.api_blueprints.base import get_service, handle_exception, success_response
from badgeledger.core.input_validation_schemas import SignatureRequestInput
from badgeledger.core.request_validator_middleware import RequestValidator, validate_request

achievements_bp = Blueprint("achievements", __name__, url_prefix="/api/achievements")

_validator = RequestValidator()


@achievements_bp.route("/signature", methods=["POST"])
@validate_request(_validator, SignatureRequestInput)
def request_signature() -> Tuple[Any, int]:
    """
    Sign a credential the player can redeem on the ledger.

    403 if the achievement was never earned. The credential itself is the
    only output; nothing is marked locally.
    """
    model: SignatureRequestInput = request.validated_model
    try:
        credential = get_service().issue_credential(model.player_address, model.achievement_id)
    except Exception as exc:
        return handle_exception(exc, "request_signature")

    return success_response(credential.to_dict())
