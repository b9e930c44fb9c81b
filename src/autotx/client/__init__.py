"""Client-side collaborators: ambient submission context, tx flags, coin parsing."""
