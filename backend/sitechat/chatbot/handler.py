from dataclasses import dataclass
from typing import Optional, Tuple

from sitechat.chatbot.states import INTRO, ASK_NAME, ASK_EMAIL, ASK_PHONE, DONE
from sitechat.chatbot import replies
from sitechat.chatbot.validators import valid_email, valid_phone


@dataclass(frozen=True)
class Transition:
    step: str
    field: Optional[Tuple[str, str]] = None
    reply: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.step == DONE


def advance(state: str, text: str) -> Transition:
    """
    Compute what a visitor text does to the onboarding dialogue.

    Pure function: the caller persists the new step, the optional contact
    field and appends the reply. Invalid input keeps the step and only
    yields a retry prompt.
    """
    text = (text or "").strip()

    if state == DONE or not text:
        return Transition(step=state)

    # ---------- INTRO ----------
    if state == INTRO:
        return Transition(step=ASK_NAME, reply=replies.ask_name())

    # ---------- NAME ----------
    if state == ASK_NAME:
        return Transition(
            step=ASK_EMAIL,
            field=("visitor_name", text),
            reply=replies.ask_email()
        )

    # ---------- EMAIL ----------
    if state == ASK_EMAIL:
        if not valid_email(text):
            return Transition(step=ASK_EMAIL, reply=replies.invalid_email())
        return Transition(
            step=ASK_PHONE,
            field=("visitor_email", text.lower()),
            reply=replies.ask_phone()
        )

    # ---------- PHONE ----------
    if state == ASK_PHONE:
        if not valid_phone(text):
            return Transition(step=ASK_PHONE, reply=replies.invalid_phone())
        return Transition(
            step=DONE,
            field=("visitor_phone", text),
            reply=replies.onboarding_done()
        )

    raise ValueError(f"Unknown onboarding step: {state}")
