"""Prompt builders for food label extraction and conversation."""

import json
from typing import Any, Dict

ANALYSIS_INSTRUCTION = """You are a food label analysis tool. Extract the following information from the provided food label image:
1. Product name
2. Ingredients list (as listed on the package)
3. Nutrition facts (serving size, calories, macronutrients, etc.)
4. Allergen information
5. Any certifications (organic, non-GMO, etc.)
6. Expiration/best before date if visible

IMPORTANT: You MUST return a valid JSON object. If the image is not a food label or the text is not readable, return:
{
  "error": "I couldn't read the food label clearly. Please take a clear photo of the label and try again.",
  "isError": true
}

Otherwise, return a JSON object with this exact structure:
{
  "productName": "",
  "ingredients": [],
  "nutritionFacts": {
    "servingSize": "",
    "calories": 0,
    "macros": {},
    "otherNutrients": {}
  },
  "allergens": [],
  "certifications": [],
  "expiryDate": "",
  "confidenceScores": {
    "ingredients": 0.0,
    "nutritionFacts": 0.0,
    "allergens": 0.0
  },
  "isError": false
}
"""


def _analysis_json(analysis: Dict[str, Any]) -> str:
    return json.dumps(analysis, indent=2, ensure_ascii=False)


def build_analysis_prompt() -> str:
    """Return the fixed extraction instruction sent with every label image."""
    return ANALYSIS_INSTRUCTION


def build_summary_prompt(analysis: Dict[str, Any]) -> str:
    """Return the summary instruction with the analysis embedded as JSON."""
    return (
        "You are a helpful food label assistant. "
        "Provide a concise summary (10-15 seconds of reading time) of the food product "
        f"based on the following analysis:\n{_analysis_json(analysis)}\n\n"
        "Focus on:\n"
        "1. Main ingredients\n"
        "2. Key nutritional highlights\n"
        "3. Notable allergens or dietary restrictions\n"
        "4. Any special certifications\n"
        "Keep the response friendly, factual, and neutral in tone. "
        "Only mention details that appear in the analysis."
    )


def build_follow_up_prompt(analysis: Dict[str, Any], question: str) -> str:
    """Return the follow-up instruction grounding the answer in the analysis."""
    return (
        "You are a helpful food label assistant.\n"
        "Answer the user's question based on the product analysis below.\n"
        "If the question cannot be answered with the available information, "
        "clearly state what information is missing. Never guess or invent "
        "ingredients, nutrition values, allergens, or certifications.\n\n"
        f"Product Analysis:\n{_analysis_json(analysis)}\n\n"
        f"User Question:\n{question.strip()}\n\n"
        "Answer concisely and factually. If the information isn't available in the analysis, say so."
    )
