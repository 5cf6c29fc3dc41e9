import logging

from chess_advisor.client.messages import ErrorMessage, PanelMessage, SuggestionMessage

logger = logging.getLogger(__name__)


class SuggestionPanel:
    """Text rendition of the advisor's side panel."""

    def __init__(self):
        self.status = "Waiting for moves..."
        self.heading = ""
        self.explanation = ""
        self.remaining = ""
        self.error = ""
        self.error_visible = False
        self.minimized = False

    def handle(self, message: PanelMessage):
        if isinstance(message, SuggestionMessage):
            self.update_suggestion(message)
            self.hide_error()
        elif isinstance(message, ErrorMessage):
            self.show_error(message.error)
        logger.info(self.render())

    def update_suggestion(self, message: SuggestionMessage):
        self.heading = "Suggested Analysis:"
        self.explanation = message.suggestion.move
        self.remaining = f"Remaining requests today: {message.suggestion.remaining_requests}"
        self.status = "Analysis received!"

    def show_error(self, error: str):
        self.error = error
        self.error_visible = True
        self.status = "Error occurred"

    def hide_error(self):
        self.error_visible = False

    def toggle_minimized(self) -> bool:
        self.minimized = not self.minimized
        return self.minimized

    def render(self) -> str:
        if self.minimized:
            return f"[+] {self.status}"
        lines = [f"[-] {self.status}"]
        if self.heading:
            lines.append(self.heading)
        if self.explanation:
            lines.append(self.explanation)
        if self.remaining:
            lines.append(self.remaining)
        if self.error_visible:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)
