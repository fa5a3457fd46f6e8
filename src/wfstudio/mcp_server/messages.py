"""Messages exchanged with the canvas over a MessageTransport.

Outbound requests are built from typed payload models; inbound responses are
narrowed into a tagged union immediately on receipt so the bridge never
handles an untyped payload.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wfstudio.core.exceptions import WfStudioError

from .types import TransportMessage, Workflow

GET_CURRENT_WORKFLOW_REQUEST = "GET_CURRENT_WORKFLOW_REQUEST"
GET_CURRENT_WORKFLOW_RESPONSE = "GET_CURRENT_WORKFLOW_RESPONSE"
APPLY_WORKFLOW_FROM_MCP = "APPLY_WORKFLOW_FROM_MCP"
APPLY_WORKFLOW_FROM_MCP_RESPONSE = "APPLY_WORKFLOW_FROM_MCP_RESPONSE"

RESPONSE_TYPES = frozenset({GET_CURRENT_WORKFLOW_RESPONSE, APPLY_WORKFLOW_FROM_MCP_RESPONSE})


class MessageValidationError(WfStudioError):
    """Raised when an inbound bridge message has a malformed payload."""

    pass


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    correlation_id: str = Field(..., alias="correlationId", min_length=1)


class GetCurrentWorkflowRequestPayload(_Payload):
    """Asks the canvas for the workflow it is showing."""


class GetCurrentWorkflowResponsePayload(_Payload):
    """Canvas answer to a fetch; workflow is None when nothing is open."""

    workflow: Optional[Workflow] = None


class ApplyWorkflowRequestPayload(_Payload):
    """Asks the canvas to load a workflow, optionally after user review."""

    workflow: Workflow
    require_confirmation: bool = Field(..., alias="requireConfirmation")
    description: Optional[str] = None


class ApplyWorkflowResponsePayload(_Payload):
    """Canvas answer to an apply."""

    success: bool
    error: Optional[str] = None


class GetCurrentWorkflowResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["GET_CURRENT_WORKFLOW_RESPONSE"]
    request_id: Optional[str] = Field(None, alias="requestId")
    payload: GetCurrentWorkflowResponsePayload


class ApplyWorkflowResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["APPLY_WORKFLOW_FROM_MCP_RESPONSE"]
    request_id: Optional[str] = Field(None, alias="requestId")
    payload: ApplyWorkflowResponsePayload


BridgeResponse = Annotated[
    Union[GetCurrentWorkflowResponse, ApplyWorkflowResponse],
    Field(discriminator="type"),
]

_response_adapter: TypeAdapter[Any] = TypeAdapter(BridgeResponse)


def parse_bridge_message(raw: Any) -> Optional[Union[GetCurrentWorkflowResponse, ApplyWorkflowResponse]]:
    """Narrow a raw inbound message into a typed bridge response.

    Args:
        raw: Message as received from the transport

    Returns:
        The typed response, or None for message types the bridge does not handle

    Raises:
        MessageValidationError: If the message is a bridge response with a bad payload
    """
    if not isinstance(raw, Mapping):
        raise MessageValidationError(f"Expected a message object, got {type(raw).__name__}")

    if raw.get("type") not in RESPONSE_TYPES:
        return None

    try:
        return _response_adapter.validate_python(dict(raw))
    except PydanticValidationError as e:
        raise MessageValidationError(f"Invalid {raw.get('type')} message: {e}") from e


def build_get_workflow_request(correlation_id: str) -> TransportMessage:
    payload = GetCurrentWorkflowRequestPayload(correlation_id=correlation_id)
    return {"type": GET_CURRENT_WORKFLOW_REQUEST, "payload": payload.model_dump(by_alias=True)}


def build_apply_workflow_request(
    correlation_id: str,
    workflow: Workflow,
    require_confirmation: bool,
    description: Optional[str] = None,
) -> TransportMessage:
    payload = ApplyWorkflowRequestPayload(
        correlation_id=correlation_id,
        workflow=workflow,
        require_confirmation=require_confirmation,
        description=description,
    )
    return {"type": APPLY_WORKFLOW_FROM_MCP, "payload": payload.model_dump(by_alias=True, exclude_none=True)}
