"""DSPy signatures for the interview delegates.

Uses Pydantic types for structured I/O and rich descriptions to guide the LLM.
"""

import dspy

from anamnesis.du.models import (
    CorrectionList,
    MultiExtractionResult,
    RoutingVerdict,
    SingleExtraction,
    SlotInfo,
)


class RouteTurn(dspy.Signature):
    """Decide how to handle the respondent's answer to the current question.

    Choose exactly one action:
    - extract: the message contains clear, useful information for one or more slots
    - ask: the message is a short direct answer to the current question only
    - clarify: the message is ambiguous, off-topic, or a question back to the interviewer

    Prefer "extract" when the message mentions values for slots other than the
    current one.
    """

    current_slot: str = dspy.InputField(desc="Slot the interviewer just asked about")
    user_message: str = dspy.InputField(desc="Respondent's reply")
    slot_catalog: list[SlotInfo] = dspy.InputField(desc="Slots that can be filled")
    filled_slots: dict = dspy.InputField(desc="Values collected so far")

    result: RoutingVerdict = dspy.OutputField(desc="Chosen action, confidence and reasoning")


class ExtractSlotValues(dspy.Signature):
    """Extract every slot value the respondent mentioned.

    Only report values that are stated in the message. Give each extraction a
    confidence from 0 to 1; use lower scores for values that are implied rather
    than stated. Use the slot ids exactly as listed in the catalog.
    """

    user_message: str = dspy.InputField(desc="Respondent's reply")
    slot_catalog: list[SlotInfo] = dspy.InputField(desc="Slots that can be filled")
    current_slot: str = dspy.InputField(desc="Slot the interviewer just asked about")

    result: MultiExtractionResult = dspy.OutputField(desc="Extracted slot values")


class ExtractSingleSlot(dspy.Signature):
    """Extract the value answering one interview question.

    Return null if the reply does not contain a usable answer.
    """

    slot_id: str = dspy.InputField(desc="Slot identifier")
    question: str = dspy.InputField(desc="Question that was asked")
    user_message: str = dspy.InputField(desc="Respondent's reply")

    result: SingleExtraction = dspy.OutputField(desc="Extracted value and confidence")


class GenerateClarification(dspy.Signature):
    """Write one short, friendly follow-up question.

    The respondent's reply did not answer the question. Ask again in a way that
    explains what information is needed. Do not give medical advice.
    """

    slot_id: str = dspy.InputField(desc="Slot identifier")
    question: str = dspy.InputField(desc="Original question")
    user_message: str = dspy.InputField(desc="Respondent's unclear reply")

    clarification: str = dspy.OutputField(desc="Follow-up question")


class SummarizeInterview(dspy.Signature):
    """Write a concise clinical intake summary from the collected answers.

    Use the conversation only to add context the slot values lack. Organise the
    summary in short sections and never invent facts.
    """

    filled_slots: dict = dspy.InputField(desc="Collected slot values")
    conversation: str = dspy.InputField(desc="Formatted interview transcript")
    session_metadata: dict = dspy.InputField(desc="Interaction count, duration and timestamps")

    summary: str = dspy.OutputField(desc="Markdown summary")


class SummarizeSlots(dspy.Signature):
    """Write a brief summary listing the collected answers."""

    filled_slots: dict = dspy.InputField(desc="Collected slot values")

    summary: str = dspy.OutputField(desc="Markdown summary")


class ParseCorrections(dspy.Signature):
    """Find the changes the respondent wants to make to their answers.

    Only report slots listed in filled_slots. Return an empty list if the
    message does not ask for any change.
    """

    filled_slots: dict = dspy.InputField(desc="Current slot values")
    user_message: str = dspy.InputField(desc="Respondent's review message")

    result: CorrectionList = dspy.OutputField(desc="Requested corrections")
