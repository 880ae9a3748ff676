"""imgmeta backend: ComfyUI workflow metadata extraction."""
