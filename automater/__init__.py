"""automater -- scaffold Next.js apps on Cloudflare with opinionated features.

Wraps ``create-cloudflare`` to generate a project, then layers in named
features (security headers, Biome, Material UI, a Toolpad admin
dashboard) by installing packages and patching or copying files.
"""

__version__ = "0.1.0"
