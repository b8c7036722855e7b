"""cr0n: adaptive SEO opportunity scoring with multi-provider federation."""

__version__ = "0.1.0"
