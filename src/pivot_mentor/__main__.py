"""Main entry point for Pivot Mentor."""

import argparse
import asyncio
from datetime import datetime, timezone
import glob
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from types import TracebackType
from typing import List

from ai.ai_conversation import AIConversation
from ai.mentor_chat.mentor_chat_backend import MentorChatBackend
from pivot_mentor.chat.terminal_chat import WELCOME_MESSAGE, TerminalChat, load_transcript, save_transcript
from pivot_mentor.user.user_manager import UserManager


def setup_logging(log_dir: str) -> None:
    """Configure application logging with timestamped files and rotation."""
    os.makedirs(log_dir, exist_ok=True)

    # Generate timestamp for log filename
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S-%f")[:23]
    log_file = os.path.join(log_dir, f"{timestamp}.log")

    # Keep up to 50 log files, max 1MB each
    handler = RotatingFileHandler(
        log_file,
        maxBytes=1024*1024,  # 1MB
        backupCount=49,  # Keep 50 files total (current + 49 backups)
        encoding='utf-8'
    )

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[handler]
    )

    cleanup_old_logs(log_dir, max_logs=50)


def cleanup_old_logs(log_dir: str, max_logs: int) -> None:
    """Remove oldest log files if we exceed maximum count."""
    log_files = glob.glob(os.path.join(log_dir, "*.log*"))
    log_files.sort(key=os.path.getctime)  # Sort by creation time

    # Remove oldest files if we have too many
    while len(log_files) > max_logs:
        try:
            os.remove(log_files.pop(0))  # Remove oldest file

        except OSError:
            pass  # Ignore errors removing old logs


def install_global_exception_handler() -> None:
    """Install a global exception handler for uncaught exceptions."""
    logger = logging.getLogger('GlobalExceptionHandler')

    def handle_exception(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None) -> None:
        """Handle uncaught exceptions and log them."""
        if issubclass(exc_type, KeyboardInterrupt):
            # Don't log keyboard interrupt
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback),
            stack_info=True
        )

    sys.excepthook = handle_exception


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(prog="pivot-mentor", description="AI startup mentor")
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Chat with the mentor in the terminal")
    chat_parser.add_argument("--url", help="mentor-chat function URL (overrides settings)")
    chat_parser.add_argument("--transcript", help="File to resume the conversation from and save it to")

    serve_parser = subparsers.add_parser("serve", help="Serve the functions over HTTP")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


async def run_chat(url: str | None, transcript: str | None) -> None:
    """Run an interactive chat session."""
    backend_settings = UserManager().get_backend_settings("mentor_chat")
    backend = MentorChatBackend(backend_settings.api_key, url or backend_settings.url or None)
    conversation = AIConversation(backend, welcome_message=WELCOME_MESSAGE)

    if transcript:
        messages = load_transcript(transcript)
        if messages:
            conversation.load_message_history(messages)

    try:
        await TerminalChat(conversation).run()

    finally:
        conversation.cancel_current_tasks()
        await conversation.wait_for_tasks()
        if transcript:
            save_transcript(transcript, conversation.get_conversation_history().get_messages())


def run_server(host: str, port: int) -> None:
    """Serve the functions app with uvicorn."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    from pivot_mentor.functions.app import create_app  # pylint: disable=import-outside-toplevel

    app = create_app(UserManager().settings())
    uvicorn.run(app, host=host, port=port, log_config=None)


def main(argv: List[str] | None = None) -> int:
    """Main function to run the application."""
    args = build_parser().parse_args(argv)

    setup_logging(os.path.expanduser(f"~/{UserManager.USER_DIR}/logs"))
    install_global_exception_handler()

    if args.command == "serve":
        run_server(args.host, args.port)
        return 0

    try:
        asyncio.run(run_chat(args.url, args.transcript))

    except KeyboardInterrupt:
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
