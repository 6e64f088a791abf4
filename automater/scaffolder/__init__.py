"""Project-level building blocks used by the feature pipeline.

* ``generator`` -- runs ``create-cloudflare`` with flags derived from options
* ``patcher``   -- pattern-based edits of generated text files
* ``installer`` -- package-manager installs
* ``templates`` -- Jinja2 rendering and static template-tree copies
"""

from automater.scaffolder.generator import build_generator_args, run_generator
from automater.scaffolder.installer import DependencyInstaller
from automater.scaffolder.patcher import Patch, apply_patches
from automater.scaffolder.templates import TemplateRenderer

__all__ = [
    "DependencyInstaller",
    "Patch",
    "TemplateRenderer",
    "apply_patches",
    "build_generator_args",
    "run_generator",
]
