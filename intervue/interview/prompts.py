"""
Prompt templates and session configuration text.

Kept separate from the business logic for easier maintenance and editing.
"""

from typing import List

from ..config import TIME_LIMIT_MESSAGES, DEFAULT_LANGUAGE


class InterviewPrompts:
    """Collection of prompts sent to the LLM."""

    @staticmethod
    def skill_extraction(resume_text: str) -> str:
        """Prompt for pulling a flat skill list out of resume text."""
        return f"""
Extract all technical skills, programming languages, tools, frameworks, and technologies from this resume text.

Return ONLY a comma-separated list of skills without any additional text, formatting, or explanations.

Examples of expected output:
- python, sql, javascript, react, docker, aws
- java, spring boot, mysql, git, kubernetes, jenkins
- c++, matlab, arduino, mechatronics, robotics, python

Resume text:
{resume_text}

Skills:
        """.strip()


def format_questions(questions: List[str]) -> str:
    """Render interview questions as the bullet list the assistant template expects."""
    return "\n".join(f"- {q}" for q in questions)


def time_limit_message(language: str) -> str:
    """Closing line spoken when the session runs out of time."""
    return TIME_LIMIT_MESSAGES.get(language, TIME_LIMIT_MESSAGES[DEFAULT_LANGUAGE])
