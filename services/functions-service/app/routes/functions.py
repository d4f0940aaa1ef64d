"""
Function Routes
The privileged create-user and delete-user endpoints
"""

from typing import Any, Dict

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import structlog

from shared.schemas.user import CreateUserRequest, DeleteUserRequest, ErrorResponse

from app.services.user_provisioning import ProvisioningError
from app.utils.dependencies import BearerToken, ProvisioningDep

logger = structlog.get_logger(__name__)

router = APIRouter()


def error_response(message: str, status_code: int) -> JSONResponse:
    """Flat ``{success: false, error}`` envelope"""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def validation_message(exc: ValidationError) -> str:
    """Human readable summary of a payload validation error"""
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        if error.get("type") == "missing":
            messages.append(f"{field} is required")
        else:
            messages.append(f"{field}: {error.get('msg')}")
    return "; ".join(messages)


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Request body as a JSON object; raises ProvisioningError(400) otherwise"""
    try:
        payload = await request.json()
    except ValueError:
        raise ProvisioningError("Request body must be valid JSON", status.HTTP_400_BAD_REQUEST)
    if not isinstance(payload, dict):
        raise ProvisioningError("Request body must be a JSON object", status.HTTP_400_BAD_REQUEST)
    return payload


@router.post("/create-user")
async def create_user(request: Request, token: BearerToken, service: ProvisioningDep):
    """
    Create an Identity, its Profile and its role-specific record

    Every failure answers 400 with the upstream message.
    """
    try:
        payload = await read_json_object(request)
        body = CreateUserRequest.model_validate(payload)
        result = await service.create_user(body)
    except ValidationError as e:
        return error_response(validation_message(e), status.HTTP_400_BAD_REQUEST)
    except ProvisioningError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error("create_user_unexpected_error", error=str(e))
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    logger.info("create_user_succeeded", user_id=result.userId)
    return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump())


@router.post("/delete-user")
async def delete_user(request: Request, token: BearerToken, service: ProvisioningDep):
    """
    Delete a user chain (RoleRecord, Profile, Identity) or a company/meal row

    Invalid input answers 400; a failed delete step answers 500.
    """
    try:
        payload = await read_json_object(request)
        body = DeleteUserRequest.model_validate(payload)
        result = await service.delete_record(body)
    except ValidationError as e:
        return error_response(validation_message(e), status.HTTP_400_BAD_REQUEST)
    except ProvisioningError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error("delete_user_unexpected_error", error=str(e))
        return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump())
