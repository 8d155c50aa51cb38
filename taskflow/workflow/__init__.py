"""Tag workflow: vocabulary, dispatch and the processing engine."""
