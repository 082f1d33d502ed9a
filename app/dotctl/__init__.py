"""dotctl - declarative dotfile and environment manager.

Links configuration files, installs packages and generates a single shell
init script from YAML app bundles and profiles kept in a git repository.
"""

__version__ = "0.4.0"
