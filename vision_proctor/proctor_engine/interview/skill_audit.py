# vision_proctor/proctor_engine/interview/skill_audit.py
from pathlib import Path
from typing import Sequence
from ..common.config import DEFAULT_REQUIRED_SKILLS, InterviewConfig
from ..common.models import SkillReport

def audit_skills(text: str, required_skills: Sequence[str] = DEFAULT_REQUIRED_SKILLS) -> SkillReport:
    """Case-insensitive keyword scan of extracted resume text."""
    lower_text = text.lower()
    found = [skill for skill in required_skills if skill.lower() in lower_text]
    missing = [skill for skill in required_skills if skill.lower() not in lower_text]
    score = round(len(found) / len(required_skills) * 100) if required_skills else 0

    return SkillReport(
        found_skills=found,
        missing_skills=missing,
        score=score,
        word_count=len(text.split()),
    )

def audit_resume_file(path, config: InterviewConfig) -> SkillReport:
    """Audits a plain-text resume against the configured skill list."""
    text = Path(path).read_text(encoding='utf-8', errors='replace')
    return audit_skills(text, config.required_skills)
