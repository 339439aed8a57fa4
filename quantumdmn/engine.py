"""
High-level access to decision evaluation.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from quantumdmn.errors import ApiError, ConfigurationError
from quantumdmn.logging import get_logger, request_context
from quantumdmn.model.codec import FeelValueCodec
from quantumdmn.model.feel_value import FeelValue, to_feel_context
from quantumdmn.service import DmnService

EVALUATE_PATH = "/api/v1/projects/{project_id}/definitions/xml/{xml_id}/evaluate"


@dataclass(frozen=True)
class EvaluationOptions:
    """Per-call options for an evaluation request."""

    version: Optional[int] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    request_id: Optional[str] = None


class DmnEngine:
    """Evaluates stored decision definitions of one project."""

    def __init__(self, service: DmnService, project_id: str, codec: Optional[FeelValueCodec] = None):
        try:
            self.project_id = uuid.UUID(str(project_id))
        except ValueError as e:
            raise ConfigurationError("Project ID must be a UUID", details={"project_id": project_id}) from e

        self.service = service
        self.codec = codec or FeelValueCodec()
        self.logger = get_logger("quantumdmn.engine")

    @classmethod
    def from_token(cls, base_url: str, token: str, project_id: str, **kwargs) -> "DmnEngine":
        """Create an engine that authenticates with a static bearer token."""
        return cls(DmnService(base_url, token, **kwargs), project_id)

    async def evaluate(self,
                       xml_id: str,
                       context: Optional[Mapping[str, Any]] = None,
                       options: Optional[EvaluationOptions] = None) -> Dict[str, FeelValue]:
        """Evaluate a definition by its XML ID.

        Context values may be plain Python data or FeelValues; plain data is
        classified with FeelValue.from_raw. Returns one FEEL value per
        decision, keyed by decision name in response order.
        """
        options = options or EvaluationOptions()
        body = self.codec.encode_context({"context": FeelValue.of_context(to_feel_context(context))})
        path = EVALUATE_PATH.format(project_id=self.project_id, xml_id=quote(xml_id, safe=""))
        params = {"version": options.version} if options.version is not None else None

        with request_context(options.request_id) as request_id:
            headers = {"Content-Type": "application/json", "X-Request-ID": request_id}
            headers.update(options.headers)

            self.logger.info("Evaluating decision", xml_id=xml_id, version=options.version)
            response = await self.service.request("POST", path, content=body, params=params, headers=headers)

        try:
            result = self.codec.decode(response.text)
        except ValueError as e:
            raise ApiError(response.status_code, response.text, "Evaluation response is not valid JSON") from e
        if not result.is_context():
            raise ApiError(response.status_code, response.text, "Evaluation response is not a JSON object")

        return dict(result.as_context())
