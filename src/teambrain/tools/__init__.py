"""
Tools Package

Message-level extraction tools: action items, entities and time references
(``task_tools``) and meeting thread detection (``analysis_tools``).
"""
