PROFILE_SYSTEM_PROMPT = (
    "You are an HR analyst. Return the result STRICTLY as JSON "
    "(no markdown, no code fences, no explanations). "
    "Always return empty lists as [], never null. Do not invent facts."
)

PROFILE_USER_PROMPT = """Resume text:
<<<
{resume_text}
>>>

Return STRICTLY one JSON object with this schema:
{{
  "summary": string,
  "skills": string[],
  "experience": [{{"company": string, "role": string, "start": string, "end": string, "description": string}}],
  "education": [{{"institution": string, "degree": string, "start": string, "end": string}}]
}}

Rules:
- No extra fields
- No markdown
- If a list is empty, return []
"""

ENRICHMENT_SYSTEM_PROMPT = (
    "You are an HR analyst. Return the result strictly as a single JSON object without explanations."
)

ENRICHMENT_USER_PROMPT = """Vacancy:
Title: {title}
Description: {description}

Candidate profile:
Summary: {summary}
Skills: {skills}
Experience entries: {experience_count}
Education entries: {education_count}

Matched skills: {matched}
Missing skills: {missing}

Return JSON with the fields:
- candidate_summary (string)
- unique_strengths (string[])
- hr_recommendation (string)
- candidate_recommendations (string[])
"""
