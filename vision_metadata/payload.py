"""Chat-completions request body for vision models."""

MAX_TOKENS = 4096
TEMPERATURE = 1
TOP_P = 1


def build_payload(prompt_text: str, image_ref: str, model_name: str) -> dict:
    """Build the request body for one image.

    Args:
        prompt_text: Resolved instruction text
        image_ref: Image URL or data URL with inline base64 bytes
        model_name: Model identifier sent alongside the deployment

    Returns:
        Request body with a single user message carrying the text and image
    """
    return {
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt_text},
                    {"type": "image_url", "image_url": {"url": image_ref}},
                ],
            }
        ],
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "top_p": TOP_P,
        "model": model_name,
    }
