"""
Advisor board orchestration core: provider adapters, LLM integration
layer, question analysis and the multi-advisor response orchestrator.
"""
__version__ = "1.0.0"
