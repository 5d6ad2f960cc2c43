"""Keep git submodules in step with local siblings or their remote branch."""
