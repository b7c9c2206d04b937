"""Generation service integration for the ReversR innovation phases.

Every call goes through the GenerationGateway, which picks the credential,
retries and caches. This module only builds prompts, calls the SDK with the
credential it is handed and parses the JSON reply.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from anthropic import AsyncAnthropic

from . import fingerprints
from .config import Settings
from .gateway import GenerationGateway
from .resilience import Credential, ErrorKind, UpstreamError
from .similarity import (
    SimilarityStore,
    build_innovation_context,
    innovation_embedding_text,
    innovation_metadata,
)

logger = logging.getLogger(__name__)

SIT_SYSTEM_INSTRUCTION = (
    "You are an expert in Systematic Inventive Thinking (SIT), a structured methodology "
    "for innovation. You strictly adhere to the \"Closed World\" principle: all solutions "
    "must derive from components already within or immediately adjacent to the product's "
    "defined system boundary. You are precise, analytical, and creative within constraints. "
    "Always answer with a single JSON object and nothing else."
)

SIT_PATTERNS = (
    "Subtraction",
    "Task Unification",
    "Multiplication",
    "Division",
    "Attribute Dependency",
)

# Receives the credential and the sketch prompt, returns base64 image data
ImageGenerator = Callable[[Credential, str], Awaitable[Optional[str]]]


class InnovationClient:
    """Client for the analyze / pattern / spec / schematic / sketch / BOM phases."""

    def __init__(
        self,
        gateway: GenerationGateway,
        settings: Settings,
        similarity_store: Optional[SimilarityStore] = None,
        image_generator: Optional[ImageGenerator] = None,
    ):
        """Initialize innovation client.

        Args:
            gateway: Gateway owning the credential pool and cache
            settings: Model configuration
            similarity_store: Optional store of past innovations for prompt context
            image_generator: Optional image backend used for concept sketches
        """
        self.gateway = gateway
        self.model = settings.generation_model
        self.max_tokens = settings.max_output_tokens
        self.temperature = settings.temperature
        self.base_url = settings.generation_base_url or None
        self.similarity_store = similarity_store
        self.image_generator = image_generator
        self._clients: Dict[str, AsyncAnthropic] = {}

    def _client_for(self, credential: Credential) -> AsyncAnthropic:
        client = self._clients.get(credential.label)
        if client is None:
            # SDK retries are disabled; the gateway owns retry policy
            client = AsyncAnthropic(
                api_key=credential.secret,
                base_url=self.base_url,
                max_retries=0,
            )
            self._clients[credential.label] = client
        return client

    async def _generate_json(
        self,
        credential: Credential,
        content: Any,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Single attempt: call the model and parse its JSON reply."""
        response = await self._client_for(credential).messages.create(
            model=self.model,
            max_tokens=max_tokens or self.max_tokens,
            temperature=self.temperature,
            system=SIT_SYSTEM_INSTRUCTION,
            messages=[{"role": "user", "content": content}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return self._parse_json(text)

    def _parse_json(self, content: str) -> Dict[str, Any]:
        """Extract the JSON object from a model reply.

        Raises:
            UpstreamError: TRANSIENT if no object can be parsed
        """
        start = content.find("{")
        end = content.rfind("}") + 1
        if start == -1 or end <= start:
            raise UpstreamError("No JSON object in model response", kind=ErrorKind.TRANSIENT)

        try:
            parsed = json.loads(content[start:end])
        except json.JSONDecodeError as e:
            raise UpstreamError(f"Malformed JSON in model response: {e}", kind=ErrorKind.TRANSIENT) from e

        if not isinstance(parsed, dict):
            raise UpstreamError("Model response is not a JSON object", kind=ErrorKind.TRANSIENT)
        return parsed

    async def analyze_product(self, description: str, image: Optional[str] = None) -> Dict[str, Any]:
        """Phase 1: closed-world scan of a product.

        Args:
            description: Free-text product description
            image: Optional base64 JPEG (data URL prefix allowed); disables caching

        Returns:
            Analysis with components, neighborhood resources and attributes
        """
        prompt = self._build_analysis_prompt(description, has_image=bool(image))

        if image:
            data = image.split(",", 1)[1] if "," in image else image
            content: Any = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": "image/jpeg", "data": data},
                },
                {"type": "text", "text": prompt},
            ]
        else:
            content = prompt

        async def unit(credential: Credential) -> Dict[str, Any]:
            return await self._generate_json(credential, content)

        return await self.gateway.generate(
            unit, fingerprints.analyze_fingerprint(description, image)
        )

    def _build_analysis_prompt(self, description: str, has_image: bool) -> str:
        lead = (
            "Analyze the product shown in the image and the following description:"
            if has_image
            else "Analyze the following input:"
        )
        return f"""PHASE 1: THE CLOSED WORLD SCAN
{lead}
"{description}"

1. Deconstruct the product into its physical parts.
2. Filter for Essential Components (parts without which the product loses its primary function).
3. Identify Neighborhood Resources: elements immediately available in the product's environment.
4. List relevant Attributes for the components.
5. Define the Closed World Boundary strictly.

Return JSON with: productName, components (name, description, isEssential),
neighborhoodResources (list of strings), attributes (name, value, type: Quantitative|Qualitative),
closedWorldBoundary, rawAnalysis."""

    async def apply_pattern(self, analysis: Dict[str, Any], pattern: str) -> Dict[str, Any]:
        """Phase 2: apply one SIT pattern to an analysis.

        Args:
            analysis: Result of analyze_product
            pattern: One of SIT_PATTERNS

        Returns:
            Innovation concept
        """
        if pattern not in SIT_PATTERNS:
            raise ValueError(f"Unknown SIT pattern: {pattern}")

        context = await build_innovation_context(
            self.similarity_store, analysis.get("productName", "")
        )
        prompt = f"""PHASE 2: PATTERN APPLICATION ({pattern})
Apply the "{pattern}" SIT pattern to generate an innovative product concept.

Product: {analysis.get("productName")}
Components: {json.dumps(analysis.get("components", []))}
Neighborhood Resources: {json.dumps(analysis.get("neighborhoodResources", []))}
Closed World: {analysis.get("closedWorldBoundary")}
{context}
Generate ONE innovative concept. Return JSON with: patternUsed, conceptName, conceptDescription,
marketGap, constraint, noveltyScore (0-10), viabilityScore (0-10), marketBenefit."""

        async def unit(credential: Credential) -> Dict[str, Any]:
            result = await self._generate_json(credential, prompt)
            result["patternUsed"] = pattern
            return result

        return await self.gateway.generate(
            unit, fingerprints.apply_pattern_fingerprint(analysis, pattern, context)
        )

    async def generate_technical_spec(self, innovation: Dict[str, Any]) -> Dict[str, Any]:
        """Phase 3: technical specification for a concept."""
        prompt = f"""PHASE 3: THE ARCHITECT - Generate technical specifications.

Innovation: {innovation.get("conceptName")}
Description: {innovation.get("conceptDescription")}
Pattern: {innovation.get("patternUsed")}

Return JSON with: promptLogic (reasoning chain), componentStructure (how parts interact),
implementationNotes (key considerations)."""

        async def unit(credential: Credential) -> Dict[str, Any]:
            return await self._generate_json(credential, prompt)

        return await self.gateway.generate(unit, fingerprints.technical_spec_fingerprint(innovation))

    async def generate_schematic(self, innovation: Dict[str, Any]) -> Dict[str, Any]:
        """3D schematic made of primitive objects for the viewer."""
        prompt = f"""Generate a 3D schematic for: {innovation.get("conceptName")}
Description: {innovation.get("conceptDescription")}

Create simple 3D objects using only: box, sphere, cylinder, plane.
Each object needs: id, type, position [x,y,z], rotation [rx,ry,rz], scale [sx,sy,sz],
color (hex), material (standard/wireframe), name.
Keep it minimal and abstract. Return JSON with a single key "objects"."""

        async def unit(credential: Credential) -> Dict[str, Any]:
            scene = await self._generate_json(credential, prompt)
            if not isinstance(scene.get("objects"), list):
                raise UpstreamError("Schematic response has no objects", kind=ErrorKind.TRANSIENT)
            return scene

        return await self.gateway.generate(unit, fingerprints.schematic_fingerprint(innovation))

    async def generate_sketch(self, innovation: Dict[str, Any]) -> str:
        """2D concept sketch, rendered by the configured image generator.

        Runs with the gateway's image attempt budget.

        Returns:
            Base64-encoded image data

        Raises:
            RuntimeError: If no image generator is configured
        """
        if self.image_generator is None:
            raise RuntimeError("No image generator configured for sketches")

        generator = self.image_generator
        prompt = f"""Create a detailed technical sketch/blueprint illustration of: {innovation.get("conceptName")}

Description: {innovation.get("conceptDescription")}
Innovation Pattern: {innovation.get("patternUsed")}
Market Benefit: {innovation.get("marketBenefit")}

Generate a clean, professional product concept sketch with:
- Clear line drawings showing the product from multiple angles
- Labels pointing to key innovative features
- Technical/blueprint aesthetic with a modern feel
- Annotations explaining how the innovation works"""

        async def unit(credential: Credential) -> str:
            data = await generator(credential, prompt)
            if not data:
                raise UpstreamError("No image generated", kind=ErrorKind.TRANSIENT)
            return data

        return await self.gateway.generate_image(unit, fingerprints.sketch_fingerprint(innovation))

    async def generate_bom(
        self,
        innovation: Dict[str, Any],
        analysis: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Bill of materials for a concept."""
        prompt = f"""Create a bill of materials for: {innovation.get("conceptName")}
Description: {innovation.get("conceptDescription")}
"""
        if analysis:
            prompt += f"""Original product: {analysis.get("productName")}
Original components: {json.dumps(analysis.get("components", []))}
"""
        prompt += """
Return JSON with: items (list of name, quantity, material, estimatedCost, notes),
totalEstimatedCost, currency."""

        async def unit(credential: Credential) -> Dict[str, Any]:
            return await self._generate_json(credential, prompt, max_tokens=2000)

        return await self.gateway.generate(unit, fingerprints.bom_fingerprint(innovation, analysis))

    async def remember_innovation(self, innovation: Dict[str, Any]) -> bool:
        """Store a concept so later pattern runs can reference it.

        Returns:
            True if stored; False when no store is configured or it failed
        """
        if self.similarity_store is None:
            return False

        item = dict(innovation)
        item["metadata"] = innovation_metadata(innovation)
        stored = await self.similarity_store.store(item, innovation_embedding_text(innovation))
        if stored:
            logger.info(f"Stored innovation: {innovation.get('conceptName')}")
        else:
            logger.warning(f"Similarity store rejected innovation: {innovation.get('conceptName')}")
        return stored
