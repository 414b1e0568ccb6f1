"""Report pagination and document assembly.

Packages:
- reportgen.docs: Report model, text helpers, JSON reader, DOCX serializer, pipeline
- reportgen.layout: Word-budget preview paginator
- reportgen.image: Image-generation client, image pre-pass, figure sizing
- reportgen.render: Preview page rendering
"""
