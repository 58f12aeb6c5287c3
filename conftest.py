## Lets the tests import hibernate_retry from a plain checkout, without
## installing it first.
