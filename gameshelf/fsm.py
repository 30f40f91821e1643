from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from gameshelf.api.models import Session, SessionStatus
from gameshelf.core.errors import InvalidTransition


class SessionFSM(StateMachine):
    """FSM guard around a Session's play status.

    - statuses: browsing -> playing <-> paused -> browsing
    - the session layer builds the new Session; the FSM only decides which moves are legal.
    """

    browsing = State(SessionStatus.browsing.value, value=SessionStatus.browsing.value, initial=True)
    playing = State(SessionStatus.playing.value, value=SessionStatus.playing.value)
    paused = State(SessionStatus.paused.value, value=SessionStatus.paused.value)

    launch = browsing.to(playing)
    pause = playing.to(paused)
    resume = paused.to(playing)
    restart = playing.to.itself() | paused.to(playing)
    quit = playing.to(browsing) | paused.to(browsing)

    def __init__(self, session: Session):
        self.session = session
        super().__init__(start_value=session.status.value)

    @property
    def status(self) -> SessionStatus:
        return SessionStatus(str(self.current_state.value))

    def advance(self, event: str) -> SessionStatus:
        """Fire `event` and return the resulting status.

        Raises InvalidTransition (status untouched) when the event is not allowed.
        """

        before = self.status
        try:
            self.send(event)
        except TransitionNotAllowed as e:
            raise InvalidTransition(event, before.value) from e
        return self.status
