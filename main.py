import sys

from core.config import load_config, setup_logging
from llm.prompts import build_system_prompt
from memory import create_memory


def text_repl(user_id: str = "local") -> None:
    """Text-only REPL: log messages and show the digest they produce.

    Prefix a message with ``#channel`` to file it under that channel.
    """
    config = load_config()
    setup_logging(config.logging)
    memory = create_memory(config)
    if memory is None:
        print("Memory is disabled in config")
        return

    print("Workspace memory (commands: /context, /prompt, /stats, /reset, quit)")
    print("-" * 40)
    try:
        while True:
            line = input("\nYou: ").strip()
            if line.lower() in ("quit", "exit", "q"):
                break
            if not line:
                continue

            if line == "/context":
                print(memory.get_relevant_context(user_id, "general").summary)
            elif line == "/prompt":
                context = memory.get_relevant_context(user_id, "general")
                print(build_system_prompt("general", context.summary))
            elif line == "/stats":
                print(memory.get_stats().format())
            elif line == "/reset":
                print(memory.reset_memory(user_id=user_id))
            else:
                channel = "general"
                if line.startswith("#") and " " in line:
                    channel, line = line[1:].split(" ", 1)
                record = memory.store_interaction(user_id, channel, line, "")
                tags = record.tags
                print(f"  [#{channel}] {tags.question_type} / {tags.complexity}")
                detected = sorted(tags.languages | tags.frameworks | tags.technologies)
                if detected:
                    print(f"  [Detected: {', '.join(detected)}]")
                if tags.project_name:
                    print(f"  [Project: {tags.project_name}]")
    finally:
        memory.close()


if __name__ == "__main__":
    text_repl(sys.argv[1] if len(sys.argv) > 1 else "local")
