"""Default configuration values for dockstage."""

DEFAULT_CONFIG_FILE = "dockstage.yaml"

# Boolean options that may be supplied through the environment when the
# configuration file leaves them unset.
ENV_VAR_MAP: dict[str, str] = {
    "skip": "DOCKSTAGE_SKIP",
    "push": "DOCKSTAGE_PUSH",
    "remove": "DOCKSTAGE_REMOVE",
    "no_cache": "DOCKSTAGE_NO_CACHE",
    "pull": "DOCKSTAGE_PULL",
    "force_rm": "DOCKSTAGE_FORCE_RM",
}

TRUTHY_VALUES = ("true", "1", "yes", "on")

CONFIG_TEMPLATE = """\
# dockstage build configuration
directory: src/main/docker
build_directory: target
image_name: ${IMAGE_NAME:-my-org/my-app}
image_tags: []

force_rm: false
no_cache: false
pull: false
push: false
remove: false

# primary_last: the primary directory overwrites resources at the same path
merge_order: primary_last

resources: []
#  - directory: target/lib
#    includes: ["*.jar"]
#    excludes: []
#    target_path: lib

engine:
  base_url: ${DOCKER_HOST:-unix:///var/run/docker.sock}
  tls_verify: false
"""
