"""
Topic Speech Evaluation
=======================

Scores a student's spoken answer to a topic prompt against four weighted
criteria (relevance, grammar, fluency, vocabulary) using the LLM as an expert
examiner. The overall score is always recomputed locally from the four
sub-scores and the topic test's weights.

When the LLM is unreachable, slow, unconfigured, or returns something that
cannot be parsed, the evaluation falls back to a fixed result so the student's
submission is still recorded.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

from .errors import EvaluatorError, ValidationError
from .gemini_client import GeminiClient
from .scoring import clamp_score, round_half_up
from .settings import settings


logger = logging.getLogger(__name__)

CRITERIA_KEYS = ("relevance", "grammar", "fluency", "vocabulary")

DEFAULT_CRITERIA: Dict[str, int] = {"relevance": 30, "grammar": 25, "fluency": 25, "vocabulary": 20}

FALLBACK_EVALUATION: Dict[str, Any] = {
	"relevance_score": 70,
	"grammar_score": 70,
	"fluency_score": 70,
	"vocabulary_score": 70,
	"overall_score": 70,
	"feedback": "Your response has been recorded. Please try again later for detailed feedback.",
	"corrections": [],
	"strengths": ["Response recorded successfully"],
	"improvements": ["Detailed feedback will be available soon"],
	"fallback": True,
}


def validate_criteria(criteria: Optional[Mapping[str, Any]]) -> Dict[str, int]:
	"""Return the criteria as ints, rejecting any set whose weights do not sum to 100."""
	if criteria is None:
		return dict(DEFAULT_CRITERIA)
	missing = [k for k in CRITERIA_KEYS if k not in criteria]
	if missing:
		raise ValidationError(f"criteria is missing weights for: {', '.join(missing)}")
	weights: Dict[str, int] = {}
	for key in CRITERIA_KEYS:
		value = criteria[key]
		if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value):
			raise ValidationError(f"criteria.{key} must be a whole number")
		if not 0 <= value <= 100:
			raise ValidationError(f"criteria.{key} must be between 0 and 100")
		weights[key] = int(value)
	total = sum(weights.values())
	if total != 100:
		raise ValidationError(f"criteria weights must sum to 100 (got {total})")
	return weights


def weighted_overall(scores: Mapping[str, float], criteria: Mapping[str, int]) -> int:
	total = sum(float(scores[f"{key}_score"]) * criteria[key] for key in CRITERIA_KEYS)
	return round_half_up(total / 100)


def fallback_evaluation() -> Dict[str, Any]:
	return copy.deepcopy(FALLBACK_EVALUATION)


def _extract_json_block(text: str) -> Dict[str, Any]:
	try:
		return json.loads(text)
	except ValueError:
		pass
	# Try to locate the first JSON object in the text
	match = re.search(r"\{[\s\S]*\}", text)
	if match:
		try:
			return json.loads(match.group(0))
		except ValueError:
			pass
	raise ValueError("Failed to parse JSON from model output")


def _build_system_prompt(criteria: Mapping[str, int]) -> str:
	return f"""
You are an expert English language teacher evaluating a student's speaking response.

Evaluate based on these weighted criteria:
1. Relevance to topic ({criteria['relevance']}%)
2. Grammar accuracy ({criteria['grammar']}%)
3. Fluency and coherence ({criteria['fluency']}%)
4. Vocabulary usage ({criteria['vocabulary']}%)

Score each criterion from 0 to 100.

Return STRICT JSON only:
{{
  "relevanceScore": number,
  "grammarScore": number,
  "fluencyScore": number,
  "vocabularyScore": number,
  "feedback": "two or three sentences of overall feedback",
  "corrections": [
    {{"original": "incorrect phrase", "corrected": "correct phrase", "explanation": "why it's incorrect"}}
  ],
  "strengths": ["strength1", "strength2"],
  "improvements": ["improvement1", "improvement2"]
}}
""".strip()


def _parse_evaluation(raw: str, criteria: Mapping[str, int]) -> Dict[str, Any]:
	data = _extract_json_block(raw)
	scores = {
		"relevance_score": clamp_score(float(data["relevanceScore"])),
		"grammar_score": clamp_score(float(data["grammarScore"])),
		"fluency_score": clamp_score(float(data["fluencyScore"])),
		"vocabulary_score": clamp_score(float(data["vocabularyScore"])),
	}
	corrections = []
	for item in data.get("corrections") or []:
		if isinstance(item, dict):
			corrections.append({
				"original": str(item.get("original", "")),
				"corrected": str(item.get("corrected", "")),
				"explanation": str(item.get("explanation", "")),
			})
	return {
		**scores,
		"overall_score": weighted_overall(scores, criteria),
		"feedback": str(data.get("feedback") or "").strip(),
		"corrections": corrections,
		"strengths": [str(s) for s in data.get("strengths") or []],
		"improvements": [str(s) for s in data.get("improvements") or []],
		"fallback": False,
	}


async def request_evaluation(topic: str, prompt: str, spoken_text: str, criteria: Mapping[str, int]) -> Dict[str, Any]:
	"""Ask the LLM for an evaluation; any failure surfaces as EvaluatorError."""
	try:
		async with GeminiClient() as client:
			raw = await asyncio.wait_for(
				client.generate(
					f"Topic: {topic}\n\nPrompt: {prompt}\n\nStudent Response: {spoken_text}\n\nPlease evaluate this response.",
					system=_build_system_prompt(criteria),
					json_output=True,
					temperature=0.7,
				),
				timeout=settings.evaluator_timeout_seconds,
			)
		return _parse_evaluation(raw, criteria)
	except EvaluatorError:
		raise
	except Exception as exc:
		raise EvaluatorError(f"{type(exc).__name__}: {exc}") from exc


async def evaluate_speech(topic: str, prompt: str, spoken_text: str, criteria: Mapping[str, int]) -> Dict[str, Any]:
	try:
		return await request_evaluation(topic, prompt, spoken_text, criteria)
	except EvaluatorError as exc:
		logger.warning("Speech evaluation failed, using fallback result: %s", exc.message)
		return fallback_evaluation()
