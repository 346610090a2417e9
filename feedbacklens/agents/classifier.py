"""
Classifier Gateway.

Sends feedback text to the LLM with a fixed prompt contract and returns
the raw response text, unvalidated. Parsing and repair happen in the
Response Normalizer.
"""

import logging
import google.generativeai as genai

logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """Analyze the following user feedback and return ONLY a valid JSON object with no additional text, markdown, or formatting.

Required fields:
- sentiment: must be one of "positive", "neutral", or "negative"
- themes: array of strings, maximum 4 themes (e.g., ["UI/UX", "Performance", "Billing"])
- summary: 1-2 sentence summary of the feedback
- urgency: integer from 1-5 (1=low, 5=critical)

Feedback: "{feedback_text}"

Return JSON in this exact format:
{{
  "sentiment": "positive|neutral|negative",
  "themes": ["theme1", "theme2"],
  "summary": "Brief summary here",
  "urgency": 3
}}"""


def build_prompt(feedback_text: str) -> str:
    """Construct the classification prompt for one feedback item."""
    return PROMPT_TEMPLATE.format(feedback_text=feedback_text)


class ClassifierGateway:
    """
    Thin wrapper around the Gemini text model.

    Anything with a `classify(text) -> str` method can stand in for this
    class (e.g. a fake returning canned text in tests).
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_retries: int = 1
    ):
        """
        Initialize classifier gateway.

        Args:
            api_key: Gemini API key
            model_name: Gemini model to use
            temperature: LLM temperature (0.0 for deterministic)
            max_retries: Attempts per call before the last error is re-raised
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max(1, max_retries)

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={"temperature": temperature}
        )

        logger.info(f"Initialized ClassifierGateway with model={model_name}, temp={temperature}")

    def classify(self, text: str) -> str:
        """
        Run the classification prompt against the model.

        Args:
            text: Non-empty feedback text

        Returns:
            Raw response text as produced by the model

        Raises:
            ValueError: If text is empty
            Exception: Whatever the Gemini client raised on the final attempt
        """
        if not text or not text.strip():
            raise ValueError("Cannot classify empty feedback text")

        prompt = build_prompt(text)

        for attempt in range(self.max_retries):
            try:
                response = self.model.generate_content(prompt)
                return response.text or ""
            except Exception as e:
                logger.warning(f"Classifier call failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt == self.max_retries - 1:
                    raise

        return ""
