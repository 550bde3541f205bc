"""
lmia_pipeline.pipelines — End-to-end geocoding runs.

Each pipeline module exports a run() async function:

    from lmia_pipeline.pipelines import augment, update_cache

    result = await augment.run(path, "employer")
    result = await update_cache.run()
"""
