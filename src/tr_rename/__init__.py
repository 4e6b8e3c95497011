"""tr-rename - classify broker PDFs and rename them to a sortable scheme."""
