"""
Services Layer
The facade used by the HTTP layer and other collaborators, plus read-only
presentation data.

Services should:
- Not modify data models directly; mutations go through the business layer
- Convert business exceptions into ActionResult values
- Be stateless where possible
"""
