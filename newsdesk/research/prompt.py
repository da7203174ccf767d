"""Prompt sent to the research agent."""

from typing import List, Optional

from .models import ResearchCategory, ResearchRequest

NO_CATEGORY = "NONE"

OUTPUT_FORMAT = """{
  "title": "New, original headline (max 150 characters)",
  "content": "Full article text",
  "summary": "Short summary (2-3 sentences, max 200 characters)",
  "category_slug": "matching-category-slug or NONE",
  "confidence_score": 0.8,
  "sources": [
    {
      "title": "Source title",
      "url": "https://source-url.example",
      "snippet": "Short quote",
      "reliability_score": 0.9
    }
  ],
  "differences": [
    {
      "title": "Main difference",
      "description": "How this differs from the original coverage"
    }
  ]
}"""


def build_research_prompt(
    request: ResearchRequest,
    categories: Optional[List[ResearchCategory]] = None,
    language: str = "Turkish",
) -> str:
    """
    Build the first message of a research run.

    Args:
        request: Validated research request
        categories: Categories the article may be filed under
        language: Language the article is written in

    Returns:
        Prompt text
    """
    sections = [
        f"Research this {language} news topic thoroughly and write a new news article about it.",
        f"RESEARCH TOPIC:\n{request.query}",
    ]

    if categories:
        listing = "\n".join(f"- {category.name} ({category.slug})" for category in categories)
        sections.append(
            f"AVAILABLE CATEGORIES:\n{listing}\n\n"
            "Decide which category the article belongs to. "
            f'If none fits, answer "{NO_CATEGORY}".'
        )

    sections.append(
        "TASKS:\n"
        "1. Research the latest developments on this topic\n"
        f"2. Collect reliable information from different sources (use at most {request.max_results} sources)\n"
        "3. Weigh multiple perspectives\n"
        "4. Write a comprehensive, objective news article\n"
        "5. Compare it with the original coverage"
    )
    sections.append(f"RESEARCH DEPTH: {request.research_depth.value}")
    sections.append(f"OUTPUT FORMAT (JSON):\n{OUTPUT_FORMAT}")
    sections.append(
        "RULES:\n"
        "- Answer with JSON only, no other text\n"
        f"- Write the content in {language}\n"
        "- Focus on current, verifiable sources\n"
        "- Add angles and details missing from the original coverage\n"
        "- confidence_score must be between 0.0 and 1.0\n"
        "- If no category fits, keep confidence_score below 0.3"
    )

    return "\n\n".join(sections)
