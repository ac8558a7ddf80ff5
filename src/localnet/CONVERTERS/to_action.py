"""
Converters for generating the CI composite action that boots the devnet.
"""
import json
import os
from jinja2 import Template
from ..BUILDERS.cache_config import CacheConfigBuilder
from ..CONFIG.settings import CacheBackend, CacheMode
from ..MODELS.orchestration_config import DevnetConfig

ACTION_TEMPLATE = """name: Local celestia devnet
runs:
  using: "composite"
  steps:
    - name: Set up Docker Buildx
      uses: docker/setup-buildx-action@v3

    # needed for the buildx in order to access gha cache
    - name: Expose github actions runtime
      uses: crazy-max/ghaction-github-runtime@v1

    - name: Build the docker-compose stack
      shell: bash
      run: |
        cat > {{ compose_dir }}/cache.json <<EOF
{{ cache_document | indent(8, first=True) }}
        EOF
        cd {{ compose_dir }} && docker buildx bake --file {{ compose_name }} --file cache.json --load

    - name: Run the docker-compose stack
      shell: bash
      run: docker compose -f {{ compose_file }} up --no-build -d

    - name: Generate auth tokens
      shell: bash
      run: {{ token_script }}
"""


class ActionConverter:
    """
    Renders a composite action running the same three stages as ``localnet run``
    with plain docker commands, for runners without this tool installed.
    """

    def __init__(self, config: DevnetConfig, compose_file: str = "ci/docker-compose.yml",
                 token_script: str = "./tools/gen_auth_tokens.sh",
                 cache_mode: CacheMode = CacheMode.MAX):
        self.config = config
        self.compose_file = compose_file
        self.token_script = token_script
        self.cache_builder = CacheConfigBuilder(backend=CacheBackend.GHA, mode=cache_mode)
        self.template = Template(ACTION_TEMPLATE)

    def render(self) -> str:
        document = self.cache_builder.build(self.config).to_document()
        return self.template.render(
            cache_document=json.dumps(document, indent=2),
            compose_dir=os.path.dirname(self.compose_file) or ".",
            compose_name=os.path.basename(self.compose_file),
            compose_file=self.compose_file,
            token_script=self.token_script,
        )

    def convert(self, output_path: str = ".github/actions/local-devnet/action.yml"):
        parent = os.path.dirname(output_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output_path, "w") as f:
            f.write(self.render())
        return output_path
