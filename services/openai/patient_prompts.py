"""Prompt builders for the simulated patient and the session review."""

from typing import Iterable

from models.session_models import Message
from utils.transcript_format import format_transcript

PATIENT_GREETING = "Hello doctor!"

GATEWAY_APOLOGY = "Sorry, I encountered an error. Please try again."

REVIEW_SYSTEM_PROMPT = "You are an AI assistant providing reviews of conversations."

DEFAULT_REVIEW_GUIDELINES = "Please review this conversation and provide constructive feedback."


def build_patient_system_prompt(case_prompt: str) -> str:
    """Return the system instruction that makes the model role-play the patient."""
    return (
        "You are an AI assistant helping with a case. Your task is to simulate a patient attending "
        "the internal medicine department of a hospital. The student will talk to you and ask questions "
        "to make a preliminary diagnosis. Your character will answer only the questions asked by the "
        "student, providing no extra information. The patient's details are as follows:\n\n"
        f" {case_prompt} \n\n"
        "Instructions for the Student:\n\n"
        "Engage with the patient by asking relevant questions to gather necessary information for a "
        "preliminary diagnosis. The patient will respond concisely and only provide information in direct "
        "response to your questions.\n\n"
        f'Your first message must always be: "{PATIENT_GREETING}"'
    )


def build_review_prompt(
    guidelines: str,
    case_prompt: str,
    diagnosis: str,
    messages: Iterable[Message],
) -> str:
    """Return the single user prompt sent when reviewing a saved session."""
    diagnosis = (diagnosis or "").strip()
    if diagnosis:
        diagnosis_section = f"### Student's Differential Diagnosis ###\n\n{diagnosis}\n\n"
    else:
        diagnosis_section = "Student did not provide a differential diagnosis.\n\n"

    return (
        f"{guidelines}\n\n"
        f"### Case Prompt ###\n\n{case_prompt or 'No case prompt available'}\n\n"
        f"{diagnosis_section}"
        f"### Conversation Transcript ###\n\n{format_transcript(messages)}"
    )
