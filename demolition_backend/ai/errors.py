from __future__ import annotations


# ---------- ERROR TAXONOMY ----------

class EstimationError(Exception):
    """Base class for failures of one estimate request."""

    kind = "unknown"
    default_message = "現調中に不明なエラーが発生しました。"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.default_message)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return self.default_message


class ValidationError(EstimationError):
    kind = "validation"
    default_message = "画像を1枚以上アップロードしてください。"


class ConfigurationError(EstimationError):
    kind = "configuration"
    default_message = "APIキーが設定されていません。環境変数 GEMINI_API_KEY を設定してください。"


class TransportError(EstimationError):
    kind = "transport"
    default_message = "現調中にエラーが発生しました。"

    @property
    def user_message(self) -> str:
        if self.detail:
            return f"現調中にエラーが発生しました: {self.detail}"
        return self.default_message


class UnknownError(EstimationError):
    kind = "unknown"
