import asyncio
import uuid

from executors.action import ActionExecutor
from services.assistant import AssistantService
from services.routes import build_dispatcher
from services.task_registry import TaskRegistry


async def main():
    registry = TaskRegistry()
    assistant = AssistantService(registry, ActionExecutor(build_dispatcher(), registry))

    subscription = registry.subscribe(
        lambda task: print(f"  [task] {task.id} {task.task_type.label} -> {task.status.value}")
    )

    conversation_id = str(uuid.uuid4())
    user_text = "Book me a hotel in Goa for 2 nights from tomorrow"

    outcome = await assistant.handle_turn(conversation_id, "demo-user", user_text)
    print("Reply type:", outcome.type)
    print("Message:", outcome.message)
    if outcome.data:
        print("Details:", outcome.data)
    for suggestion in outcome.suggestions:
        print("Suggested:", suggestion.title)

    subscription.flush(timeout=2)
    subscription.unsubscribe()


if __name__ == "__main__":
    import sys
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main())
