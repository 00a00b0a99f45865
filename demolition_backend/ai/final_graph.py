from __future__ import annotations

from typing import Any, Sequence

from langgraph.graph import StateGraph, END

from demolition_backend.ai.agent_nodes import EstimateNode, EstimationClient, build_request_node
from demolition_backend.ai.prompts import DEMOLITION_ESTIMATE_PROMPT
from demolition_backend.ai.states import EstimateState


def build_estimate_graph(
    build_request_node,     # callable(state) -> dict
    estimate_node,          # async callable(state) -> dict
):
    g = StateGraph(EstimateState)

    g.add_node("build_request", build_request_node)
    g.add_node("estimate", estimate_node)

    # flow: build_request -> estimate -> END
    g.set_entry_point("build_request")
    g.add_edge("build_request", "estimate")
    g.add_edge("estimate", END)

    return g.compile()


class EstimationPipeline:
    """Request Assembler followed by Estimation Client, run as one compiled graph."""

    def __init__(self, client: EstimationClient, instruction: str = DEMOLITION_ESTIMATE_PROMPT):
        self.instruction = instruction
        self.graph = build_estimate_graph(build_request_node, EstimateNode(client))

    async def __call__(self, images: Sequence[Any]) -> str:
        final_state = await self.graph.ainvoke({
            "instruction": self.instruction,
            "images": list(images),
        })
        return final_state["result_text"]
