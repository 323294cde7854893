"""Reference front-end and evaluator for the Nois scripting language."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
