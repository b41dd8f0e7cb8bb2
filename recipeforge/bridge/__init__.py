"""Bridge layer between the recipe engine and its external collaborators.

The engine depends only on the Protocols in ``registry`` and
``deployments``; the other modules are concrete implementations.

Modules
-------
registry
    Registry contract (``RegistryClient``, ``Repository``, ``BlobStore``,
    ``ContentStream``) and ``read_all``, which verifies fetched content
    against its descriptor.
local_registry
    Directory-backed registry on top of ``ContentAddressedStore``.
oci_http
    OCI distribution registry over httpx.
deployments
    Provisioning contract (``DeploymentsClient``, ``DeploymentPoller``).
simulated_backend
    In-process backend that fabricates output resource ids.
arm_backend
    Azure Resource Manager deployments over httpx.
"""
