def test_imports():
    """
    @brief
    Verifies that all core Alchemist modules are importable.

    @details
    Ensures package structure integrity and confirms that the loaders,
    validator, rules, suggestions, priorities, metrics and export
    subpackages resolve without import errors.
    """
    import alchemist
    import alchemist.dataloader.entities_loader
    import alchemist.export.config_export
    import alchemist.metrics.metrics
    import alchemist.priorities.profiles
    import alchemist.rules
    import alchemist.suggestions
    import alchemist.validator

    # --- Assert ---
    assert alchemist.__version__
    assert all(
        [
            alchemist.dataloader.entities_loader,
            alchemist.export.config_export,
            alchemist.metrics.metrics,
            alchemist.priorities.profiles,
            alchemist.rules,
            alchemist.suggestions,
            alchemist.validator,
        ]
    )
