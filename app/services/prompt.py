"""
Prompt Service - Load and manage AI prompts from external files
Supports template variable substitution
"""
from pathlib import Path
from typing import Dict, Optional
import json


class PromptService:
    """Service for loading prompts from text files with template variable support"""

    def __init__(self, prompts_dir: Optional[Path] = None):
        # __file__ is app/services/prompt.py, go up 3 levels to reach project root
        self.prompts_dir = prompts_dir or Path(__file__).parent.parent.parent / "prompts"
        self._cache: Dict[str, str] = {}

    def load_prompt(self, prompt_name: str, use_cache: bool = True) -> str:
        """
        Load a prompt from a text file

        Args:
            prompt_name: Name of the prompt file (without .txt extension)
            use_cache: Whether to use cached prompt if available

        Returns:
            Prompt content as string
        """
        if use_cache and prompt_name in self._cache:
            return self._cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.txt"

        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        with open(prompt_file, 'r', encoding='utf-8') as f:
            content = f.read().strip()

        if use_cache:
            self._cache[prompt_name] = content

        return content

    def render_template(self, template_name: str, **variables) -> str:
        """
        Render a template, replacing {variable_name} placeholders

        Dict/list values (and keys ending in _json) are rendered as JSON.

        Args:
            template_name: Template file name (without .txt extension)
            **variables: Template variables

        Returns:
            Rendered prompt

        Example:
            >>> prompt_service.render_template(
            ...     "insight_welcome",
            ...     title="Morning walk",
            ...     emotion="Calm"
            ... )
        """
        content = self.load_prompt(template_name)

        for key, value in variables.items():
            placeholder = f"{{{key}}}"

            if key.endswith("_json") or isinstance(value, (dict, list)):
                content = content.replace(placeholder, json.dumps(value, ensure_ascii=False, indent=2))
            else:
                content = content.replace(placeholder, "" if value is None else str(value))

        return content

    def get_system_prompt(self) -> str:
        """Shared system prompt for insight generation"""
        return self.load_prompt("insight_system")

    def reload(self):
        """Clear the cache (prompt files edited at runtime)"""
        self._cache.clear()


# Global prompt service instance
prompt_service = PromptService()
