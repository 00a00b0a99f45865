# states.py

from typing import Any, Dict, List, TypedDict


class EstimateState(TypedDict, total=False):
    # ------- INPUTS -------

    # Fixed survey instruction sent as the text part
    instruction: str

    # Ordered PendingImage sequence taken from the session
    images: List[Any]

    # ------- REQUEST ASSEMBLY -------

    # langchain content parts: one text part followed by one part per image
    # [{"type": "text", "text": ...},
    #  {"type": "image", "source_type": "base64", "mime_type": ..., "data": ...}]
    request: List[Dict[str, Any]]

    # ------- MODEL OUTPUT -------

    # Free-form text returned by the model, rendered verbatim
    result_text: str
