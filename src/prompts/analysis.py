"""Prompt text for the call-quality analysis request.

Placeholders are filled with str.format by the prompt builder; literal
braces in the JSON shape are doubled. Do not reformat: the exact text is
part of the scoring contract with the model.
"""

# fmt: off
SYSTEM_PROMPT = "You are an expert AI voice agent quality analyst. Always respond with valid JSON only."

NO_SCRIPT_CONTEXT = "No script provided"

ANALYSIS_PROMPT_TEMPLATE = """You are an expert AI voice agent quality analyst. Analyze this voice call transcript against the provided script.

## Script Configuration:
{script_context}

## Transcript:
{formatted_transcript}

## Analysis Requirements:

### 1. Five Pillars Assessment (0-100 each):
{pillar_definitions}

### 2. Section Compliance ({section_count} sections):
For each section: {section_names}

Rate 0-100 with status (pass/partial/fail) and notes. Include every section, even when it does not apply to this call.

### 3. Anomaly Detection:
Identify issues like:
{anomaly_types}

### 4. Violations:
Critical rule breaches with evidence quotes copied exactly from the transcript.

### 5. Recommendations:
3-5 actionable improvements.

## Output limits:
- Keep every "notes" and "message" under 30 words.
- Report at most 10 anomalies and at most 10 violations.
- Use "turnIndex" values that match the [Turn N] labels minus one.

Respond with ONLY valid JSON matching this structure, with no markdown and no extra text:
{{
  "pillars": {{
    "reliability": <number 0-100>,
    "latency": null,
    "accuracy": <number 0-100>,
    "adherence": <number 0-100>,
    "outcome": {{ "score": <number 0-100>, "status": "<success|partial|failed>" }}
  }},
  "sectionCompliance": {{
    "<section_name>": {{ "score": <0-100>, "status": "<pass|partial|fail>", "notes": "<brief note>" }}
  }},
  "anomalies": [
    {{ "type": "<anomaly_type>", "severity": "<high|medium|low>", "message": "<description>", "turnIndex": <optional number> }}
  ],
  "violations": [
    {{ "rule": "<rule name>", "evidence": "<quote from transcript>", "severity": "<critical|warning>" }}
  ],
  "recommendations": ["<recommendation 1>", "<recommendation 2>", ...],
  "overallScore": <number 0-100>,
  "riskLevel": "<low|medium|high|critical>"
}}"""
# fmt: on
