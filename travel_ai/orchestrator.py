import asyncio
import logging
from collections import OrderedDict
from typing import Any, Callable, List, Optional, Set

from travel_ai.clients.generative import GenerativeClient
from travel_ai.clients.remote_config import ConfigProvider
from travel_ai.errors import ConfigError, EmptyResponseError, GenerateError, LocationError
from travel_ai.location.formatting import LOOKING_FOR_LOCATION, location_to_prompt, to_detailed_string
from travel_ai.location.provider import LocationProvider
from travel_ai.models import Intent, LocationSpec, PromptRequest, RequestState
from travel_ai.pipeline_trace import TraceEvents, emit_event, start_trace
from travel_ai.prompts.templates import build_prompt
from travel_ai.sanitizer import clean

logger = logging.getLogger(__name__)

LOCATION_NOT_AVAILABLE = "Location not available"
EMPTY_RESPONSE = "Received empty response."
SERVER_PROBLEM = "Problem with the server: "
UNEXPECTED_ERROR = "Something went wrong. Please try again later."
KEPT_TRACES = 20

StateListener = Callable[[RequestState], None]


class RequestOrchestrator:
    """Drives one UI session: location -> prompt -> model -> sanitize -> published state.

    The orchestrator is the only writer of the session's ``RequestState``.
    Every operation that publishes takes a sequence number when it starts and
    may only publish while it is still the newest operation, so a slow,
    superseded request can never overwrite the result of a newer one.
    """

    def __init__(
        self,
        generative_client: GenerativeClient,
        config_provider: ConfigProvider,
        location_provider: LocationProvider,
    ):
        self._client = generative_client
        self._config = config_provider
        self._location = location_provider
        self._state = RequestState.initial()
        self._display_location = LOOKING_FOR_LOCATION
        self._sequence = 0
        self._published_sequence = 0
        self._traces: "OrderedDict[int, TraceEvents]" = OrderedDict()
        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()

    # ── Observation ──────────────────────────────────────────────────────────

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def output_text(self) -> str:
        return self._state.output_text

    @property
    def request_id(self) -> int:
        """Sequence number of the operation that produced the current state."""
        return self._published_sequence

    @property
    def latest_request_id(self) -> int:
        return self._sequence

    @property
    def trace(self) -> List[dict[str, Any]]:
        """Stage events of the request that produced the current state."""
        return list(self._traces.get(self._published_sequence, []))

    def trace_for(self, request_id: int) -> Optional[List[dict[str, Any]]]:
        """Stage events of one of the recent requests, including superseded ones."""
        events = self._traces.get(request_id)
        return list(events) if events is not None else None

    def current_display_location(self) -> str:
        return self._display_location

    def user_denied_location(self, message: str) -> None:
        self._display_location = message

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for every published state; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _begin(self) -> int:
        self._sequence += 1
        self._traces[self._sequence] = start_trace()
        while len(self._traces) > KEPT_TRACES:
            self._traces.popitem(last=False)
        return self._sequence

    def _publish(self, sequence: int, state: RequestState) -> RequestState:
        if sequence != self._sequence:
            logger.info(
                "Dropping stale %s state from request %d (newest is %d)",
                state.status, sequence, self._sequence,
            )
            emit_event(stage="publish", status="dropped", message="Superseded by a newer request")
            return state

        self._state = state
        self._published_sequence = sequence
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")
        return state

    # ── Credential ───────────────────────────────────────────────────────────

    async def refresh_credential(self) -> None:
        """Fetch the API key and install it in the generative client."""
        credential = await self._config.fetch_credential()
        self._client.configure(credential)

    async def initialize(self) -> RequestState:
        sequence = self._begin()
        self._publish(sequence, RequestState.loading())
        try:
            await self.refresh_credential()
        except ConfigError as e:
            logger.error("Credential fetch failed: %s", e)
            emit_event(stage="config", status="failed", message=str(e))
            return self._publish(sequence, RequestState.error(SERVER_PROBLEM + str(e)))
        emit_event(stage="config", status="success", message="API key fetched")
        return self._publish(sequence, RequestState.initial())

    # ── Prompting ────────────────────────────────────────────────────────────

    def dispatch(
        self,
        intent: Intent,
        prompt: Optional[str] = None,
        photo: Optional[bytes] = None,
        location_input: Optional[str] = None,
    ) -> asyncio.Task:
        """Fire-and-forget ``send_prompt``; observe the outcome through ``state``.

        ``Loading`` is published before this returns, and the returned task's
        sequence number is ``latest_request_id``.
        """
        sequence = self._start_request(intent)
        task = asyncio.create_task(self._execute(sequence, intent, prompt, photo, location_input))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def send_prompt(
        self,
        intent: Intent,
        prompt: Optional[str] = None,
        photo: Optional[bytes] = None,
        location_input: Optional[str] = None,
    ) -> RequestState:
        """Run one request to completion and return the state it produced."""
        sequence = self._start_request(intent)
        return await self._execute(sequence, intent, prompt, photo, location_input)

    def _start_request(self, intent: Intent) -> int:
        sequence = self._begin()
        logger.info("Request %d started (intent=%s)", sequence, intent.value)
        self._publish(sequence, RequestState.loading())
        return sequence

    async def _execute(
        self,
        sequence: int,
        intent: Intent,
        prompt: Optional[str],
        photo: Optional[bytes],
        location_input: Optional[str],
    ) -> RequestState:
        try:
            return await self._run(sequence, intent, prompt, photo, location_input)
        except asyncio.CancelledError:
            logger.info("Request %d cancelled", sequence)
            raise
        except Exception:
            logger.exception("Request %d failed unexpectedly", sequence)
            return self._publish(sequence, RequestState.error(UNEXPECTED_ERROR))

    async def _run(
        self,
        sequence: int,
        intent: Intent,
        prompt: Optional[str],
        photo: Optional[bytes],
        location_input: Optional[str],
    ) -> RequestState:
        try:
            location = await self._resolve_location(location_input)
        except LocationError as e:
            logger.warning("Request %d: no location (%s: %s)", sequence, type(e).__name__, e)
            emit_event(stage="location", status="failed", message=str(e))
            return self._publish(sequence, RequestState.error(LOCATION_NOT_AVAILABLE))

        request = PromptRequest(intent=intent, location=location, prompt=prompt, photo=photo)
        final_prompt = build_prompt(request.intent, location_to_prompt(request.location), request.prompt or "")
        emit_event(
            stage="prompt",
            status="success",
            message="Prompt built",
            details={"intent": intent.value, "length": len(final_prompt)},
        )

        try:
            response = await self._client.generate(final_prompt, request.photo)
        except EmptyResponseError:
            logger.warning("Request %d: empty response", sequence)
            emit_event(stage="generate", status="failed", message=EMPTY_RESPONSE)
            return self._publish(sequence, RequestState.error(EMPTY_RESPONSE))
        except GenerateError as e:
            logger.warning("Request %d: generation failed (%s)", sequence, type(e).__name__)
            emit_event(stage="generate", status="failed", message=str(e))
            return self._publish(sequence, RequestState.error(str(e)))

        emit_event(stage="generate", status="success", message="Model answered", details={"length": len(response)})
        logger.info("Request %d succeeded", sequence)
        return self._publish(sequence, RequestState.success(clean(response)))

    async def _resolve_location(self, location_input: Optional[str]) -> LocationSpec:
        if location_input and location_input.strip():
            emit_event(stage="location", status="success", message="Using manually entered location")
            return LocationSpec.from_text(location_input)

        coordinate = await self._location.current_location()
        self._display_location = to_detailed_string(coordinate)
        emit_event(stage="location", status="success", message="Using GPS location")
        return LocationSpec.from_coordinate(coordinate)
