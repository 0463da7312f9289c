"""ssrforge: SSR-site deployment plan compiler.

Turns a framework's build output into a validated, declarative deployment
plan (CDN behaviors, storage and function origins, edge or regional server
function) and drives a provisioning engine through it:

  - Build layouts per framework family (Remix Vite and classic compiler)
  - Immutable plan builder with an ordered behavior list, catch-all last
  - Validator reporting every structural violation at once
  - Provisioning in dependency order against a pluggable engine
  - Concurrent asset upload with versioned / non-versioned cache headers
  - Post-deploy cache invalidation with an optional, cancellable wait
"""

__version__ = "0.1.0"
__description__ = "Compile SSR build output into a CDN deployment plan"

from ssrforge.compiler.builder import PlanBuilder, build_plan
from ssrforge.compiler.validator import PlanValidationError, validate_plan
from ssrforge.core.deployer import SiteDeployer
from ssrforge.core.errors import SsrForgeError
from ssrforge.layouts import BuildOutputMissing, load_build_metadata
from ssrforge.provisioning import InMemoryEngine, ProvisioningError, Provisioner
from ssrforge.sync import AssetSync, InvalidationDriver, InvalidationTimeout
from ssrforge.cli.app import app as cli

__all__ = [
    "AssetSync",
    "BuildOutputMissing",
    "InMemoryEngine",
    "InvalidationDriver",
    "InvalidationTimeout",
    "PlanBuilder",
    "PlanValidationError",
    "ProvisioningError",
    "Provisioner",
    "SiteDeployer",
    "SsrForgeError",
    "build_plan",
    "cli",
    "load_build_metadata",
    "validate_plan",
    "__version__",
]
