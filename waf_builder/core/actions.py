"""
Rule actions, default actions and custom responses.
"""

from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import StructuralValidationError
from .objects import NAME_PATTERN

DEFAULT_BLOCK_RESPONSE_CODE = 403
MIN_IMMUNITY_TIME = 60
MAX_IMMUNITY_TIME = 259200


class ResponseBodyContentType(str, Enum):
    """Type of content in a custom response body."""

    TEXT_PLAIN = "TEXT_PLAIN"
    TEXT_HTML = "TEXT_HTML"
    APPLICATION_JSON = "APPLICATION_JSON"


class CustomResponseBody(BaseModel):
    """A response body returned by a Block action.

    The web ACL or rule group stores bodies in a map; ``key`` names the
    entry and defaults to the name of the rule that uses it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    content_type: ResponseBodyContentType
    content: str
    key: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v:
            raise StructuralValidationError("Custom response body content must not be empty")
        return v

    @field_validator("key")
    @classmethod
    def validate_key(cls, v):
        if v is not None and not NAME_PATTERN.match(v):
            raise StructuralValidationError(f"Invalid response body key: '{v}'")
        return v

    def to_cfn(self) -> Dict[str, Any]:
        return {"ContentType": self.content_type.value, "Content": self.content}


def _headers_to_cfn(headers: Dict[str, str]) -> list:
    return [{"Name": name, "Value": value} for name, value in headers.items()]


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    cfn_key: ClassVar[str] = ""
    custom_headers: Dict[str, str] = {}

    def response_body_key(self, default_key: str) -> Optional[str]:
        return None

    def response_bodies(self, default_key: str) -> Dict[str, CustomResponseBody]:
        return {}

    def to_cfn(self, body_key: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.custom_headers:
            body["CustomRequestHandling"] = {
                "InsertHeaders": _headers_to_cfn(self.custom_headers)
            }
        return {self.cfn_key: body}


class _TokenAction(_Action):
    immunity_time_seconds: Optional[int] = None

    @field_validator("immunity_time_seconds")
    @classmethod
    def validate_immunity_time(cls, v):
        if v is not None and not MIN_IMMUNITY_TIME <= v <= MAX_IMMUNITY_TIME:
            raise StructuralValidationError(
                f"Immunity time must be between {MIN_IMMUNITY_TIME} and "
                f"{MAX_IMMUNITY_TIME} seconds, got {v}"
            )
        return v


class AllowAction(_Action):
    type: Literal["allow"] = "allow"
    cfn_key: ClassVar[str] = "Allow"


class CountAction(_Action):
    type: Literal["count"] = "count"
    cfn_key: ClassVar[str] = "Count"


class CaptchaAction(_TokenAction):
    type: Literal["captcha"] = "captcha"
    cfn_key: ClassVar[str] = "Captcha"


class ChallengeAction(_TokenAction):
    type: Literal["challenge"] = "challenge"
    cfn_key: ClassVar[str] = "Challenge"


class BlockAction(_Action):
    """Block the request, optionally with a custom response."""

    type: Literal["block"] = "block"
    cfn_key: ClassVar[str] = "Block"
    response_code: Optional[int] = None
    response_body: Optional[CustomResponseBody] = None

    @field_validator("response_code")
    @classmethod
    def validate_response_code(cls, v):
        if v is not None and not 200 <= v <= 599:
            raise StructuralValidationError(f"Response code must be 200-599, got {v}")
        return v

    def response_body_key(self, default_key: str) -> Optional[str]:
        if self.response_body is None:
            return None
        return self.response_body.key or default_key

    def response_bodies(self, default_key: str) -> Dict[str, CustomResponseBody]:
        key = self.response_body_key(default_key)
        if key is None:
            return {}
        return {key: self.response_body}

    def to_cfn(self, body_key: Optional[str] = None) -> Dict[str, Any]:
        if self.response_code is None and not self.custom_headers and self.response_body is None:
            return {"Block": {}}
        response: Dict[str, Any] = {
            "ResponseCode": self.response_code or DEFAULT_BLOCK_RESPONSE_CODE
        }
        if self.response_body is not None:
            response["CustomResponseBodyKey"] = self.response_body.key or body_key
        if self.custom_headers:
            response["ResponseHeaders"] = _headers_to_cfn(self.custom_headers)
        return {"Block": {"CustomResponse": response}}


AnyRuleAction = Annotated[
    Union[AllowAction, BlockAction, CountAction, CaptchaAction, ChallengeAction],
    Field(discriminator="type"),
]
AnyDefaultAction = Annotated[Union[AllowAction, BlockAction], Field(discriminator="type")]


class RuleAction:
    """The action to perform when a rule matches."""

    @staticmethod
    def allow(custom_headers: Optional[Dict[str, str]] = None) -> AllowAction:
        return AllowAction(custom_headers=custom_headers or {})

    @staticmethod
    def block(
        response_code: Optional[int] = None,
        custom_headers: Optional[Dict[str, str]] = None,
        response_body: Optional[CustomResponseBody] = None,
    ) -> BlockAction:
        return BlockAction(
            response_code=response_code,
            custom_headers=custom_headers or {},
            response_body=response_body,
        )

    @staticmethod
    def count(custom_headers: Optional[Dict[str, str]] = None) -> CountAction:
        return CountAction(custom_headers=custom_headers or {})

    @staticmethod
    def captcha(
        custom_headers: Optional[Dict[str, str]] = None,
        immunity_time_seconds: Optional[int] = None,
    ) -> CaptchaAction:
        """Require a solved CAPTCHA; requests without a valid token are challenged."""
        return CaptchaAction(
            custom_headers=custom_headers or {}, immunity_time_seconds=immunity_time_seconds
        )

    @staticmethod
    def challenge(
        custom_headers: Optional[Dict[str, str]] = None,
        immunity_time_seconds: Optional[int] = None,
    ) -> ChallengeAction:
        """Run a silent browser challenge."""
        return ChallengeAction(
            custom_headers=custom_headers or {}, immunity_time_seconds=immunity_time_seconds
        )


class DefaultAction:
    """The action to perform when no rule in a web ACL matches."""

    @staticmethod
    def allow(custom_headers: Optional[Dict[str, str]] = None) -> AllowAction:
        return RuleAction.allow(custom_headers)

    @staticmethod
    def block(
        response_code: Optional[int] = None,
        custom_headers: Optional[Dict[str, str]] = None,
        response_body: Optional[CustomResponseBody] = None,
    ) -> BlockAction:
        return RuleAction.block(response_code, custom_headers, response_body)
