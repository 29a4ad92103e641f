import logging
from pathlib import Path

from convoflow import ConvoFlowApp, EngineConfig, FlowGraph
from convoflow.errors import EngineError
from convoflow.models import ExecutionContext, MemoryState
from convoflow.tools.schema import Tool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

# --------------------------------
# Flow definition
# --------------------------------

graph = FlowGraph.load(Path(__file__).parent / "flows" / "appointment.json")

# --------------------------------
# Consumer retrieval tools
# --------------------------------

OPENING_HOURS = {
    "monday": "09:00-17:00",
    "tuesday": "09:00-17:00",
    "wednesday": "09:00-13:00",
    "thursday": "09:00-17:00",
    "friday": "09:00-15:00",
}


def lookup_hours(args):
    day = args["day"].strip().lower()
    return {"day": day, "hours": OPENING_HOURS.get(day, "closed")}


hours_tool = Tool(
    name="opening_hours",
    description="Look up the opening hours for a weekday",
    handler=lookup_hours,
    input_schema={"day": "string"},
)

# --------------------------------
# Create engine
# --------------------------------

engine = ConvoFlowApp.create(
    graph=graph,
    config=EngineConfig.from_env(),
    retrieval_tools=[hours_tool],
)

# --------------------------------
# Run conversation
# --------------------------------

node_id = graph.start_node.id
history = ()
memory = MemoryState.empty()

while True:
    user_input = input("\nYou: ")
    if user_input.lower() in {"exit", "quit"}:
        break

    ctx = ExecutionContext(
        current_node_id=node_id,
        latest_user_message=user_input,
        history=history,
        memory=memory,
    )

    try:
        result = engine.execute(ctx)
    except EngineError as e:
        print(f"\n[{e.failure_code.value}] {e}")
        continue

    print(f"\nAgent: {result.assistant_message}")

    node_id, history, memory = result.current_node_id, result.history, result.memory

    if result.flow_completed:
        print("\n(flow completed)")
        break
