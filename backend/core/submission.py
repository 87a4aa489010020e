"""Resource submission and resource request forms.

``SubmissionPipeline`` reproduces the submit flow of the web form:

    validate -> uploading (simulated progress) -> processing (the real POST)
             -> success | error -> back to idle after a fixed delay

The upload progress is cosmetic. It advances by a random 5-20% every tick
and has no connection to the actual request, which only starts once the bar
is full. Validation failures stop before anything is sent.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.cascade import SelectorChain, university_chain, skill_chain, exam_chain
from core.client import ApiError
from core.validation import validate_resource, validate_request

logger = logging.getLogger(__name__)

LEVEL_LABELS = {
    "university": "university",
    "domain": "domain",
    "subject": "subject",
    "skill_category": "skill category",
    "skill": "skill",
    "exam_category": "exam category",
    "exam": "exam",
}

SUBMIT_ERROR = "Failed to save resource. Please try again."
BUSY_ERROR = "A submission is already in progress"


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class ResourceForm:
    """Form state for a resource submission: free-text fields plus one
    selector chain per resource type."""

    def __init__(self, client):
        self.client = client
        self.chains: Dict[str, SelectorChain] = {
            "university": university_chain(client),
            "skill": skill_chain(client),
            "competitive": exam_chain(client),
        }
        self.title = ""
        self.description = ""
        self.url = ""
        self.type: Optional[str] = None

    def load(self) -> None:
        for chain in self.chains.values():
            chain.load_root()

    @property
    def chain(self) -> Optional[SelectorChain]:
        return self.chains.get(self.type) if self.type else None

    def set_type(self, resource_type: Optional[str]) -> None:
        self.type = resource_type or None
        for chain in self.chains.values():
            chain.clear()

    def select(self, name: str, value: Any) -> None:
        for chain in self.chains.values():
            if name in chain.names:
                chain.select(name, value)
                return
        raise KeyError(name)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "url": self.url,
        }
        if self.type:
            payload["type"] = self.type
        chain = self.chain
        if self.type == "university":
            payload["university_id"] = chain["university"].value
            payload["domain_id"] = chain["domain"].value
            payload["subject_id"] = chain["subject"].value
        elif self.type == "skill":
            payload["skill_id"] = chain["skill"].value
        elif self.type == "competitive":
            payload["exam_id"] = chain["exam"].value
        return payload

    def validate(self) -> Dict[str, str]:
        errors = validate_resource(self.to_payload())
        chain = self.chain
        if chain is None:
            errors["type"] = "Please select a resource type"
            return errors
        missing = [level for level in chain.levels if level.value in (None, "")]
        for level in missing:
            errors[level.name] = f"Please select a {LEVEL_LABELS.get(level.name, level.name)}"
        if missing:
            # the per-level messages say more than the generic category one
            errors.pop("category", None)
            errors.pop("type", None)
        return errors

    def reset(self) -> None:
        self.title = self.description = self.url = ""
        self.set_type(None)


@dataclass
class SubmissionResult:
    status: SubmissionStatus
    errors: Dict[str, str] = field(default_factory=dict)
    resource: Optional[Dict[str, Any]] = None
    phases: List[SubmissionStatus] = field(default_factory=list)
    progress: List[float] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.SUCCESS


Listener = Callable[[SubmissionStatus, float], None]


class SubmissionPipeline:
    TICK_SECONDS = 0.2
    PROCESSING_DELAY = 1.0
    SUCCESS_RESET_DELAY = 4.0
    ERROR_RESET_DELAY = 3.0

    def __init__(self, client, sleep: Callable[[float], None] = time.sleep,
                 rng: Optional[random.Random] = None):
        self.client = client
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.status = SubmissionStatus.IDLE
        self.progress = 0.0
        self.is_submitting = False
        self.errors: Dict[str, str] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def submit(self, form: ResourceForm) -> SubmissionResult:
        if self.is_submitting:
            return SubmissionResult(self.status, errors={"submit": BUSY_ERROR})
        errors = form.validate()
        if errors:
            self.errors = errors
            return SubmissionResult(SubmissionStatus.IDLE, errors=errors)

        payload = form.to_payload()
        result = SubmissionResult(SubmissionStatus.UPLOADING)
        self.errors = {}
        self.is_submitting = True

        self._set(SubmissionStatus.UPLOADING, 0.0, result)
        self._simulate_upload(result)
        self._set(SubmissionStatus.PROCESSING, self.progress, result)

        try:
            resource = self.client.submit_resource(payload)
        except ApiError as e:
            logger.error("saving resource failed: %s", e)
            self.errors = dict(e.field_errors, submit=SUBMIT_ERROR)
            result.errors = dict(self.errors)
            self._set(SubmissionStatus.ERROR, self.progress, result)
            self.sleep(self.ERROR_RESET_DELAY)
            self._reset(result)
            return result

        self.sleep(self.PROCESSING_DELAY)
        result.resource = resource
        self._set(SubmissionStatus.SUCCESS, 100.0, result)
        form.reset()
        self.sleep(self.SUCCESS_RESET_DELAY)
        self._reset(result)
        return result

    def _simulate_upload(self, result: SubmissionResult) -> None:
        while self.progress < 100.0:
            self.sleep(self.TICK_SECONDS)
            self.progress = min(100.0, self.progress + self.rng.uniform(5, 20))
            result.progress.append(self.progress)
            self._notify()

    def _set(self, status: SubmissionStatus, progress: float, result: SubmissionResult) -> None:
        self.status = status
        self.progress = progress
        result.status = status
        result.phases.append(status)
        self._notify()

    def _reset(self, result: SubmissionResult) -> None:
        # result keeps the terminal status; only the pipeline goes back to idle
        self.status = SubmissionStatus.IDLE
        self.progress = 0.0
        self.is_submitting = False
        result.phases.append(SubmissionStatus.IDLE)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.status, self.progress)


class RequestForm:
    """Form state for asking for a resource that does not exist yet.

    Only university requests use the selector chain; skill and exam requests
    name the skill or exam in free text.
    """

    def __init__(self, client):
        self.client = client
        self.chain = university_chain(client)
        self.title = ""
        self.description = ""
        self.type: Optional[str] = None
        self.skill = ""
        self.exam = ""
        self.priority = "medium"
        self.contact_email = ""
        self.errors: Dict[str, str] = {}

    def load(self) -> None:
        self.chain.load_root()

    def set_type(self, request_type: Optional[str]) -> None:
        self.type = request_type or None
        self.skill = self.exam = ""
        self.chain.clear()

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
        }
        if self.contact_email:
            payload["contact_email"] = self.contact_email
        if self.type == "university":
            payload["subject_id"] = self.chain["subject"].value
        elif self.type == "skill":
            payload["skill"] = self.skill
        elif self.type == "competitive":
            payload["exam"] = self.exam
        return payload

    def validate(self) -> Dict[str, str]:
        errors = validate_request(self.to_payload())
        if self.type == "university":
            for name in ("university", "domain"):
                if self.chain[name].value in (None, ""):
                    errors[name] = f"Please select a {name}"
        return errors

    def submit(self) -> Optional[Dict[str, Any]]:
        """Send the request; returns the created request or None with ``errors`` set."""
        self.errors = self.validate()
        if self.errors:
            return None
        try:
            response = self.client.submit_request(self.to_payload())
        except ApiError as e:
            logger.error("submitting request failed: %s", e)
            self.errors = dict(e.field_errors, submit="Failed to submit request. Please try again.")
            return None
        self.title = self.description = self.skill = self.exam = self.contact_email = ""
        self.priority = "medium"
        self.set_type(None)
        return response.get("request")
