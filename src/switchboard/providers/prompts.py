"""System prompts for vendor LLM executors.

The prompt is the base line, an optional role line and an optional task
line joined by spaces. Unknown roles and task types contribute nothing.
Clearance levels (e.g. "TOP_SECRET") are not roles and add no role line.
"""

BASE_PROMPT = "You are an AI assistant reached through the Switchboard routing service."

ROLE_PROMPTS: dict[str, str] = {
    "executive": "Provide strategic insights and high-level analysis.",
    "clinician": "Focus on medical accuracy and patient safety. Always cite medical sources.",
    "researcher": "Provide detailed scientific analysis with citations.",
    "developer": "Focus on technical accuracy and best practices.",
    "admin": "Ensure compliance and security in all responses.",
}

TASK_PROMPTS: dict[str, str] = {
    "text_generation": "Generate clear, concise, and accurate text.",
    "code_generation": "Generate secure, efficient, and well-documented code.",
    "code": "Generate secure, efficient, and well-documented code.",
    "medical_diagnosis": (
        "Provide evidence-based medical analysis. Never replace professional medical advice."
    ),
    "medical": "Provide evidence-based medical analysis. Never replace professional medical advice.",
    "threat_analysis": "Analyze security threats with focus on actionable intelligence.",
    "threat-analysis": "Analyze security threats with focus on actionable intelligence.",
    "research_synthesis": "Synthesize research with academic rigor and proper citations.",
    "synthesis": "Synthesize research with academic rigor and proper citations.",
    "image_analysis": "Analyze images accurately and describe findings clearly.",
    "audio_transcription": "Transcribe audio with high accuracy.",
    "real_time_translation": "Translate accurately while preserving context and nuance.",
}


def build_system_prompt(task_type: str, role: str | None = None) -> str:
    """Compose the system prompt for one request.

    Example:
        prompt = build_system_prompt("code", "developer")
    """
    parts = [BASE_PROMPT]
    if role:
        role_prompt = ROLE_PROMPTS.get(role.lower())
        if role_prompt:
            parts.append(role_prompt)
    task_prompt = TASK_PROMPTS.get(task_type)
    if task_prompt:
        parts.append(task_prompt)
    return " ".join(parts)
