"""memoria: long-term memory for stateless conversational agents.

The engine records each completed turn, distills durable memories from
it, and assembles a bounded prompt context for the next model call.

Usage:
    from memoria.memory.engine import MemoryEngine
    from memoria.config import get_settings

    engine = MemoryEngine.from_config(get_settings().memory)
    await engine.start()
"""

__version__ = "0.1.0"
