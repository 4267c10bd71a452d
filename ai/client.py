# ai/client.py
from openai import AsyncOpenAI
from settings import OPENAI_API_KEY, OPENAI_MAX_RETRIES, OPENAI_TIMEOUT

# shared by every capability wrapper; their errors are folded into Results, not raised
client = AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=OPENAI_TIMEOUT, max_retries=OPENAI_MAX_RETRIES)
