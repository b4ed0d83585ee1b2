from langchain_google_genai import ChatGoogleGenerativeAI
from briefsmith.core.config import settings

def get_llm(model_name: str, temperature: float = 0.0):
    """
    Returns a configured Gemini model instance for one candidate model.
    The reasoning adapter calls this once per candidate while negotiating.
    """
    return ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=settings.GOOGLE_API_KEY,
        temperature=temperature,
    )
