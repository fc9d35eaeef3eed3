"""
AI project summary collaborator.

Sends a research prompt about one project to a Gemini-compatible
``generateContent`` endpoint and returns the narrative text. Any failure is
reported as ServiceUnavailable with a fixed user-facing message.
"""

import logging
from typing import Any, Dict, Optional

import requests  # type: ignore

from .client import APIClient
from ..core import constants
from ..core.exceptions import ServiceUnavailable


PROMPT_TEMPLATE = """
<project_research_request>
<project_details>
<name>{name} ({name_en})</name>
<code>{code}</code>
<estimated_value>{value}</estimated_value>
</project_details>

<instructions>
Research and summarize publicly available information about the above investment project.
Your summary MUST include:

1. PROJECT IDENTIFICATION - confirm the project name, alternative names and project code.
2. LOCATION ANALYSIS - country, region, city/municipality, project site or corridor,
   and any location uncertainty or multiple sites.
3. IMPLEMENTATION STATUS & PRESS COVERAGE - recent press reports, status (planning,
   tendering, construction, completed), delays or controversies, and budget changes
   against the reference estimate of {value}.
4. KEY STAKEHOLDERS - implementing agency, contractors, funding sources.
5. EXTERNAL FINANCING AND TECHNICAL ASSISTANCE - EU, EC or WBIF support, and other
   partners such as the World Bank Group, EIB, AFD or China.
6. ECONOMIC & FINANCIAL ANALYSIS - any EFA or cost-benefit analysis, and the ERR/EIRR.
7. LINKS AND REFERENCE - the three most relevant and recent reference links.

<output_format>
- Use clear section headers
- Keep total response to approximately 400-500 words
- Cite sources with [index] notation
- If information cannot be determined, explicitly state "Not determined from available sources"
- Prioritize recent information (last 2-3 years)
</output_format>
</instructions>
</project_research_request>
"""


def build_prompt(name: str, name_en: str, code: str, value: str) -> str:
    """Render the research prompt for one project."""
    return PROMPT_TEMPLATE.format(name=name, name_en=name_en, code=code, value=value)


def extract_text(response: Dict[str, Any]) -> str:
    """
    Concatenate the text parts of the first candidate.

    Raises:
        ServiceUnavailable: If the response holds no text
    """
    candidates = response.get("candidates") or []
    if not candidates:
        raise ServiceUnavailable()

    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise ServiceUnavailable()
    return text


class SummaryAPI(APIClient):
    """Client for the AI project summary service."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = constants.DEFAULT_SUMMARY_URL,
        model: str = constants.DEFAULT_SUMMARY_MODEL,
        timeout: float = 60,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(base_url=base_url, timeout=timeout, max_retries=0, logger=logger)
        self.api_key = api_key
        self.model = model

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "SummaryAPI":
        """Create a client from a Config instance."""
        return cls(
            api_key=config.summary_api_key,
            base_url=config.summary_base_url,
            model=config.summary_model,
            timeout=config.summary_timeout,
            logger=logger
        )

    def generate_summary(self, name: str, name_en: str, code: str, value: str) -> str:
        """
        Generate a narrative summary for a project.

        Args:
            name: Project name in the local language
            name_en: Project name in English
            code: Project code
            value: Formatted estimated cost, e.g. "€120m"

        Returns:
            Summary text

        Raises:
            ServiceUnavailable: If the service is not configured or the request fails
        """
        if not self.api_key:
            self.logger.error("AI summary requested but no API key is configured")
            raise ServiceUnavailable()

        body = {
            "contents": [{"parts": [{"text": build_prompt(name, name_en, code, value)}]}],
            "tools": [{"google_search": {}}],
            "generationConfig": {"temperature": constants.SUMMARY_TEMPERATURE},
        }

        self.logger.info(f"Requesting AI summary for project {code}")
        try:
            response = self.post(
                f"/models/{self.model}:generateContent",
                data=body,
                params={"key": self.api_key},
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            self.logger.error(f"Error generating project summary: {e}")
            raise ServiceUnavailable()

        return extract_text(response)
