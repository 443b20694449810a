import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class ChunkPhase(Enum):
    '''Enum to state the actual phase of a chunk'''
    INIT      = 0
    UNPACKING = auto()
    DONE      = auto()


def get_root_from_chunk(instance):
    return get_instance_from_chunk(instance, condition=lambda x: x.father is None)


def get_instance_from_class_name(instance, name):
    return get_instance_from_chunk(instance, condition=lambda x: x.__class__.__name__ == name)


def get_instance_from_chunk(instance, condition):
    while not condition(instance):
        if instance.father is None:
            raise AttributeError(f'no chunk satisfies the condition starting from {instance!r}')
        instance = instance.father

    return instance


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            length = fields.StructField('I')
            data = fields.StringField(n=Dependency('.length'))

    and have the length of the string contained in the field named 'data'
    read from the field named 'length' at the moment 'data' is unpacked.

    The syntax for the expression is inspired from module resolution
    with an extra element via the first char of the expression:

     - '.' indicates we refer to a field at the same level
     - '@' indicates the the first component is the name of a class
     - otherwise the resolution starts from the root chunk
    '''
    def __init__(self, expression):
        self.expression = expression

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        fields_path = self.expression.split('.')
        # '.length'.split(".") -> ['', 'length']
        # 'header.length'.split(".") -> ['header', 'length']

        if fields_path[0] == '':
            field = instance.father
            fields_path = fields_path[1:]
            logger.debug(' resolve from father: \'%s\'' % field.__class__.__name__)
        elif fields_path[0].startswith('@'):
            field = get_instance_from_class_name(instance, fields_path[0][1:])
            fields_path = fields_path[1:]
            logger.debug(' resolve from class: \'%s\'' % field.__class__.__name__)
        else:
            field = get_root_from_chunk(instance)
            logger.debug(' resolve from root: \'%s\'' % field.__class__.__name__)

        for component_name in fields_path:
            field = getattr(field, component_name)

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        value = self.resolve_field(instance).value

        logger.debug(' %r resolved with value %s' % (self, value))

        return value


class PropertyDescriptor(object):
    """This the glue for dependency management: an attribute of a field
    that can be a plain value or a Dependency resolved when read."""

    def __init__(self, name: str, _type: type):
        self.name = name
        self.type = _type

    def __get__(self, instance, owner):
        if instance is None:
            return self

        data = instance.__dict__
        if self.name not in data:
            raise AttributeError(f"no '{self.name}' here!")

        value = data[self.name]

        if isinstance(value, Dependency):
            # a prototype has nothing to resolve against
            if instance.father is None:
                return None

            return value.resolve(instance)

        return value

    def __set__(self, instance, value):
        if value is not None and not isinstance(value, (self.type, Dependency)):
            raise ValueError(f"'{self.name}' must be of type {self.type.__name__} or a Dependency")

        instance.__dict__[self.name] = value
